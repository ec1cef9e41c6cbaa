from __future__ import annotations

from dataclasses import dataclass

from werkzeug.security import check_password_hash, generate_password_hash


@dataclass(slots=True)
class PasswordHasher:
    """Salted password hashes for user accounts.

    *method* is any method string ``generate_password_hash`` accepts.
    """

    method: str = "scrypt"

    def hash(self, password: str) -> str:
        return generate_password_hash(password, method=self.method)

    def verify(self, password: str, encoded: str) -> bool:
        return check_password_hash(encoded, password)
