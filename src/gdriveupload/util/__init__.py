from .ids import drive_link, extract_id, is_drive_url
from .mime import FOLDER_MIME, is_folder
from .paths import display_name, normalize_path
from .time import datetime_to_epoch, epoch_to_naive_utc, now_epoch
from .validation import is_valid_email, parse_speed

__all__ = [
    "extract_id",
    "is_drive_url",
    "drive_link",
    "FOLDER_MIME",
    "is_folder",
    "normalize_path",
    "display_name",
    "now_epoch",
    "datetime_to_epoch",
    "epoch_to_naive_utc",
    "parse_speed",
    "is_valid_email",
]
