class AppointmentError(Exception):
    """Base error; carries the HTTP status and the message shown to clients."""
    status_code = 500
    message = "Internal server error."

    def __init__(self, message: str = None):
        if message:
            self.message = message
        super().__init__(self.message)


class ValidationError(AppointmentError):
    status_code = 400
    message = "Validation Error"

    def __init__(self, details: str, message: str = None):
        self.details = details
        super().__init__(message)


class InvalidArgument(AppointmentError):
    status_code = 400
    message = "Invalid argument."


class NotFound(AppointmentError):
    status_code = 404
    message = "Appointment not found."


class Unauthorized(AppointmentError):
    status_code = 401
    message = "Unauthorized"


class Forbidden(AppointmentError):
    status_code = 403
    message = "Forbidden"


class StoreError(AppointmentError):
    """Infrastructure failure. The cause is logged, never sent to the client."""
    status_code = 500
    message = "Internal server error – try again"
