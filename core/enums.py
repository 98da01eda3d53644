from __future__ import annotations

from enum import Enum


class StoreBackend(str, Enum):
    MEMORY = "memory"
    DYNAMODB = "dynamodb"


class Vendor(str, Enum):
    GENERIC = "generic"
    AFRICASTALKING = "africastalking"
    INFOBIP = "infobip"
    VODACOM = "vodacom"
    GENERIC_JSON = "generic-json"
    EMULATOR = "emulator"


class SessionKey:
    CURRENT_PATH = "_p"
    NEXT_PATH = "_next"
    MENU_NOTICE = "_notice"

    RESERVED = (
        CURRENT_PATH,
        NEXT_PATH,
        MENU_NOTICE,
    )


class ReplyText:
    INVALID_SESSION = "Invalid session"
    SERVICE_UNAVAILABLE = "Service unavailable."
    REQUEST_CANCELLED = "Request cancelled."
    UNAUTHORIZED = "Unauthorized."
    BUSY = "Busy. Please try again."
    TRY_LATER = "Service unavailable. Try again later."
    INVALID_OPTION = "Invalid option."


INPUT_DELIMITER = "*"
CONTINUE_PREFIX = "CON "
END_PREFIX = "END "
