"""Input validation utilities."""

import grp
import pwd
import re
from typing import List

# Portable login names as accepted by useradd's default NAME_REGEX.
USERNAME_PATTERN = re.compile(r"^[a-z_][a-z0-9_-]*\$?$")
MAX_USERNAME_LENGTH = 32


class Validator:
    """Validate inputs and system state."""

    @staticmethod
    def user_exists(username: str) -> bool:
        """Check if user exists on system.

        Args:
            username: Username to check

        Returns:
            True if user exists, False otherwise
        """
        try:
            pwd.getpwnam(username)
            return True
        except KeyError:
            return False

    @staticmethod
    def group_exists(group: str) -> bool:
        """Check if group exists on system."""
        try:
            grp.getgrnam(group)
            return True
        except KeyError:
            return False

    @staticmethod
    def validate_username(username: str) -> List[str]:
        """Validate a login name.

        Returns:
            List of validation error messages
        """
        errors: List[str] = []

        if len(username) > MAX_USERNAME_LENGTH:
            errors.append(f"Username too long: {username}")

        if not USERNAME_PATTERN.match(username):
            errors.append(f"Invalid username format: {username}")

        return errors

    @classmethod
    def validate_credentials(cls, username: str, password: str) -> List[str]:
        """Validate the automation account credentials.

        Args:
            username: Account name
            password: Password entered at the prompt

        Returns:
            List of validation error messages
        """
        if not username or not password:
            return ["Username and password are required."]

        errors = cls.validate_username(username)

        if "\n" in password:
            errors.append("Password must not contain newline characters.")

        return errors
