from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import List, Optional
from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, MongoClient, ReturnDocument
from pymongo.errors import PyMongoError
import logging

import errors
from models import Appointment, check_date, validate_appointment


class AppointmentStore(ABC):
    """Persistence contract shared by the MongoDB and JSON file stores."""

    @abstractmethod
    def list_all(self) -> List[Appointment]:
        """Every record, in no particular order."""

    @abstractmethod
    def list_by_date(self, date: str) -> List[Appointment]:
        """Records on ``date`` ascending by time. Raises InvalidArgument for a bad date."""

    @abstractmethod
    def find_by_phone(self, phone: str, date: Optional[str] = None) -> Appointment:
        """Most recent record for ``phone`` (optionally on ``date``). Raises NotFound."""

    @abstractmethod
    def get(self, appointment_id: str) -> Appointment:
        pass

    @abstractmethod
    def first(self) -> Appointment:
        """Any one record; NotFound when the store is empty."""

    @abstractmethod
    def create(self, data: dict) -> Appointment:
        pass

    @abstractmethod
    def update(self, appointment_id: str, changes: dict) -> Appointment:
        """Shallow-merge ``changes`` into the record; the merged record must validate."""

    @abstractmethod
    def delete(self, appointment_id: str):
        pass

    @abstractmethod
    def delete_all(self):
        pass

    @abstractmethod
    def ping(self):
        """Cheap connectivity check. Raises StoreError."""

    def close(self):
        pass


def to_appointment(doc: dict) -> Appointment:
    """Mongo document -> outward record: ``_id`` becomes ``id``, ``__v`` is dropped."""
    doc = dict(doc)
    doc["id"] = str(doc.pop("_id"))
    doc.pop("__v", None)
    return Appointment.model_validate(doc)


def object_id(appointment_id: str) -> ObjectId:
    if not ObjectId.is_valid(appointment_id):
        raise errors.InvalidArgument("Invalid appointment ID format.")
    return ObjectId(appointment_id)


class MongoAppointmentStore(AppointmentStore):
    """Appointments in the ``appointments`` collection.

    Each operation is a single-document command, so consistency is whatever
    MongoDB gives per document. No transactions are used.
    """

    collection_name = "appointments"

    def __init__(self, uri: str = None, client: MongoClient = None, db_name: str = "appointmentManager",
                 timeout_ms: int = 5000):
        if client is None:
            try:
                client = MongoClient(
                    uri,
                    maxPoolSize=10,
                    serverSelectionTimeoutMS=timeout_ms,
                    socketTimeoutMS=timeout_ms,
                )
                db = client.get_default_database(default=db_name)
            except PyMongoError as e:
                logging.error(f"MongoDB client setup failed: {e}")
                raise errors.StoreError() from e
        else:
            db = client[db_name]
        self.client = client
        self.collection = db[self.collection_name]

    def _run(self, action: str, fn):
        try:
            return fn()
        except PyMongoError as e:
            logging.error(f"MongoDB {action} failed: {e}")
            raise errors.StoreError() from e

    def list_all(self):
        docs = self._run("find", lambda: list(self.collection.find({})))
        return [to_appointment(d) for d in docs]

    def list_by_date(self, date):
        check_date(date)
        docs = self._run("find", lambda: list(self.collection.find({"date": date}).sort("time", ASCENDING)))
        return [to_appointment(d) for d in docs]

    def find_by_phone(self, phone, date=None):
        query = {"phone": phone}
        if date:
            query["date"] = date
        docs = self._run("find", lambda: list(
            self.collection.find(query).sort([("date", DESCENDING), ("time", DESCENDING)]).limit(1)
        ))
        if not docs:
            raise errors.NotFound("No appointment found for this phone number.")
        return to_appointment(docs[0])

    def get(self, appointment_id):
        oid = object_id(appointment_id)
        doc = self._run("find_one", lambda: self.collection.find_one({"_id": oid}))
        if doc is None:
            raise errors.NotFound()
        return to_appointment(doc)

    def first(self):
        doc = self._run("find_one", lambda: self.collection.find_one({}))
        if doc is None:
            raise errors.NotFound("No appointments found.")
        return to_appointment(doc)

    def create(self, data):
        doc = validate_appointment(data)
        now = datetime.now(timezone.utc)
        doc["createdAt"] = now
        doc["updatedAt"] = now
        result = self._run("insert_one", lambda: self.collection.insert_one(doc))
        doc["_id"] = result.inserted_id
        return to_appointment(doc)

    def update(self, appointment_id, changes):
        oid = object_id(appointment_id)
        existing = self._run("find_one", lambda: self.collection.find_one({"_id": oid}))
        if existing is None:
            raise errors.NotFound()
        fields = validate_appointment({**existing, **changes})
        fields["updatedAt"] = datetime.now(timezone.utc)
        doc = self._run("find_one_and_update", lambda: self.collection.find_one_and_update(
            {"_id": oid}, {"$set": fields}, return_document=ReturnDocument.AFTER
        ))
        if doc is None:
            raise errors.NotFound()
        return to_appointment(doc)

    def delete(self, appointment_id):
        oid = object_id(appointment_id)
        result = self._run("delete_one", lambda: self.collection.delete_one({"_id": oid}))
        if result.deleted_count == 0:
            raise errors.NotFound()

    def delete_all(self):
        self._run("delete_many", lambda: self.collection.delete_many({}))

    def ping(self):
        self._run("ping", lambda: self.client.admin.command("ping"))

    def close(self):
        self.client.close()


def open_store(config: dict) -> AppointmentStore:
    if config["store"] == "file":
        from file_store import JsonFileAppointmentStore
        return JsonFileAppointmentStore(config["data_file"])
    return MongoAppointmentStore(config["mongo_uri"], timeout_ms=config["mongo_timeout_ms"])
