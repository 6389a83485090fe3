"""Client-side checks that run before anything touches the network."""
import re

from parkaccess.core.constants import MIN_PASSWORD_LENGTH
from parkaccess.core.errors import InvalidInputError

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_credentials(email: str, password: str, confirm_password: str | None = None) -> str:
    """Return the normalized email or raise InvalidInputError with every problem found."""
    problems: list[str] = []
    email = (email or "").strip()
    if not _EMAIL_RE.match(email):
        problems.append("Please enter a valid email address")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        problems.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if confirm_password is not None and confirm_password != password:
        problems.append("Passwords do not match")
    if problems:
        raise InvalidInputError("; ".join(problems))
    return email


def photo_extension(filename: str) -> str:
    """Extension to keep on the stored photo ("" when the name has none)."""
    name = (filename or "").strip().rsplit("/", 1)[-1]
    if "." not in name.strip("."):
        return ""
    return name.rsplit(".", 1)[-1].lower()
