from fastapi import FastAPI, Depends, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from typing import List, Optional
import logging

import auth
import errors
import scheduler
from config import load_config
from database import AppointmentStore, open_store
from models import (
    Appointment,
    AppointmentCreate,
    AppointmentUpdate,
    BillDetails,
    LoginRequest,
    Token,
    describe_errors,
    newest_first,
)


def get_store(request: Request) -> AppointmentStore:
    return request.app.state.store


def create_app(config: dict, store: AppointmentStore = None) -> FastAPI:
    """Build the API. ``store`` is opened from ``config`` at start-up unless one is injected."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = store is None
        app.state.store = None
        try:
            app.state.store = open_store(config) if owned else store
            app.state.store.ping()
        except errors.StoreError:
            logging.error(f"Could not connect to the {config['store']} store.")
            if owned and app.state.store is not None:
                app.state.store.close()
            raise
        logging.info(f"Connected to the {config['store']} store.")

        keep_alive = None
        if config["store"] == "mongo" and config["keepalive_enabled"]:
            keep_alive = scheduler.start_keep_alive(app.state.store, config["keepalive_interval_seconds"])
        try:
            yield
        finally:
            if keep_alive is not None:
                await scheduler.stop_keep_alive(keep_alive)
            if owned:
                app.state.store.close()

    app = FastAPI(title="Appointment Manager", lifespan=lifespan)
    # CORS wraps the token gate so auth failures still carry CORS headers
    if config["auth_enabled"]:
        app.middleware("http")(auth.token_gate(config["jwt_secret"]))
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Error handlers
    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"message": "Validation Error", "details": describe_errors(exc.errors())})

    @app.exception_handler(errors.ValidationError)
    async def appointment_validation_error(request: Request, exc: errors.ValidationError):
        return JSONResponse(status_code=400, content={"message": exc.message, "details": exc.details})

    @app.exception_handler(errors.AppointmentError)
    async def appointment_error(request: Request, exc: errors.AppointmentError):
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(Exception)
    async def general_error(request: Request, exc: Exception):
        logging.error(f"500 error: {exc}")
        return JSONResponse(status_code=500, content={"message": errors.StoreError.message})

    # Routes
    if config["auth_enabled"]:
        @app.post("/api/auth/login", response_model=Token)
        def login(body: LoginRequest):
            auth.check_credentials(body.username, body.password)
            return Token(token=auth.issue_token(config["jwt_secret"], config["token_ttl_minutes"]))

    @app.get("/api/appointments", response_model=List[Appointment], response_model_exclude_none=True)
    def list_appointments(store: AppointmentStore = Depends(get_store)):
        return newest_first(store.list_all())

    @app.get("/api/appointments/by-date", response_model=List[Appointment], response_model_exclude_none=True)
    def appointments_by_date(date: Optional[str] = None, store: AppointmentStore = Depends(get_store)):
        return store.list_by_date(date)

    @app.get("/api/appointments/{appointment_id}", response_model=Appointment, response_model_exclude_none=True)
    def get_appointment(appointment_id: str, store: AppointmentStore = Depends(get_store)):
        return store.get(appointment_id)

    @app.get("/api/bill-details/{phone}", response_model=BillDetails)
    def bill_details(phone: str, date: Optional[str] = None, store: AppointmentStore = Depends(get_store)):
        appointment = store.find_by_phone(phone, date)
        return BillDetails(
            patientName=appointment.name,
            billDate=appointment.date,
            services=appointment.services,
        )

    @app.get("/api/keepwake", response_model=Appointment, response_model_exclude_none=True)
    def keepwake(store: AppointmentStore = Depends(get_store)):
        return store.first()

    @app.post("/api/appointments", status_code=201, response_model=Appointment, response_model_exclude_none=True)
    def create_appointment(body: AppointmentCreate, store: AppointmentStore = Depends(get_store)):
        return store.create(body.model_dump())

    @app.put("/api/appointments/{appointment_id}", response_model=Appointment, response_model_exclude_none=True)
    def update_appointment(appointment_id: str, body: AppointmentUpdate, store: AppointmentStore = Depends(get_store)):
        return store.update(appointment_id, body.changes())

    @app.delete("/api/appointments/{appointment_id}", status_code=204)
    def delete_appointment(appointment_id: str, store: AppointmentStore = Depends(get_store)):
        store.delete(appointment_id)
        return Response(status_code=204)

    @app.delete("/api/appointments", status_code=204)
    def delete_all_appointments(store: AppointmentStore = Depends(get_store)):
        store.delete_all()
        return Response(status_code=204)

    if config.get("static_dir"):
        app.mount("/", StaticFiles(directory=config["static_dir"], html=True), name="static")

    return app


def build_app(config: dict = None) -> FastAPI:
    """App factory for ``uvicorn main:build_app --factory``."""
    config = config or load_config()
    logging.basicConfig(level=getattr(logging, str(config["log_level"]).upper(), logging.INFO))
    return create_app(config)


if __name__ == "__main__":
    import uvicorn

    config = load_config()
    app = build_app(config)
    logging.info(f"Server is running on http://localhost:{config['port']}")
    uvicorn.run(app, host="0.0.0.0", port=config["port"])
