"""contact-sieve — Find the name and phone columns in spreadsheets, filter and re-export."""

__version__ = "0.2.0"

PHONE_CANDIDATES: tuple[str, ...] = ("so dien thoai", "sdt", "dien thoai", "phone")
NAME_CANDIDATES: tuple[str, ...] = ("ho va ten", "ten", "ho ten", "name")

PROVENANCE_FIELDS: tuple[str, ...] = ("__file", "__sheet")
