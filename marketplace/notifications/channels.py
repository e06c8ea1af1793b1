from enum import Enum


class Channel(str, Enum):
    INAPP = "inapp"
    EMAIL = "email"


class Recipient(str, Enum):
    BUYER = "buyer"
    SELLER = "seller"
