"""Appointments kept in a single JSON file.

Every mutation reads the whole array, changes it in memory and writes the
whole array back. There is no locking: two requests writing at the same time
race and the later write wins, silently dropping the earlier change. That is
acceptable for a single low-traffic instance and nothing more.
"""
from typing import List
import json
import logging
import os
import time

import errors
from database import AppointmentStore
from models import Appointment, check_date, validate_appointment


class JsonFileAppointmentStore(AppointmentStore):

    def __init__(self, path: str):
        self.path = path

    def _read(self) -> List[dict]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logging.error(f"Reading {self.path} failed: {e}")
            raise errors.StoreError() from e
        if not isinstance(data, list):
            logging.error(f"{self.path} does not hold a JSON array")
            raise errors.StoreError()
        return data

    def _write(self, records: List[dict]):
        try:
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(records, f, indent=2)
        except OSError as e:
            logging.error(f"Writing {self.path} failed: {e}")
            raise errors.StoreError() from e

    def _new_id(self, records: List[dict]) -> str:
        taken = {r.get("id") for r in records}
        stamp = int(time.time() * 1000)
        while str(stamp) in taken:
            stamp += 1
        return str(stamp)

    @staticmethod
    def _index(records: List[dict], appointment_id: str) -> int:
        for i, record in enumerate(records):
            if record.get("id") == appointment_id:
                return i
        raise errors.NotFound()

    def list_all(self):
        return [Appointment.model_validate(r) for r in self._read()]

    def list_by_date(self, date):
        check_date(date)
        matches = [Appointment.model_validate(r) for r in self._read() if r.get("date") == date]
        return sorted(matches, key=lambda a: a.time)

    def find_by_phone(self, phone, date=None):
        matches = [
            r for r in self._read()
            if r.get("phone") == phone and (not date or r.get("date") == date)
        ]
        if not matches:
            raise errors.NotFound("No appointment found for this phone number.")
        latest = max(matches, key=lambda r: (r.get("date", ""), r.get("time", "")))
        return Appointment.model_validate(latest)

    def get(self, appointment_id):
        records = self._read()
        return Appointment.model_validate(records[self._index(records, appointment_id)])

    def first(self):
        records = self._read()
        if not records:
            raise errors.NotFound("No appointments found.")
        return Appointment.model_validate(records[0])

    def create(self, data):
        fields = validate_appointment(data)
        records = self._read()
        record = {"id": self._new_id(records), **fields}
        records.append(record)
        self._write(records)
        return Appointment.model_validate(record)

    def update(self, appointment_id, changes):
        records = self._read()
        i = self._index(records, appointment_id)
        fields = validate_appointment({**records[i], **changes})
        records[i] = {"id": appointment_id, **fields}
        self._write(records)
        return Appointment.model_validate(records[i])

    def delete(self, appointment_id):
        records = self._read()
        del records[self._index(records, appointment_id)]
        self._write(records)

    def delete_all(self):
        self._write([])

    def ping(self):
        self._read()
