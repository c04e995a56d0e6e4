"""Bucket naming rules (S3-style: lowercase letters, digits and single hyphens)."""

import re

from ..error_handling import InvalidBucketName

MIN_LENGTH = 3
MAX_LENGTH = 63
_PATTERN = re.compile(r"^[a-z0-9]([a-z0-9\-]*[a-z0-9])?$")


class BucketNameValidator:
    """Checks bucket names before they enter a BucketRegistry."""

    @staticmethod
    def validate(name: str) -> None:
        """
        Validate a bucket name.

        Raises:
            InvalidBucketName: With a reason naming the first rule violated
        """
        if len(name) < MIN_LENGTH:
            raise InvalidBucketName(name, f"must be at least {MIN_LENGTH} characters long")

        if len(name) > MAX_LENGTH:
            raise InvalidBucketName(name, f"must be at most {MAX_LENGTH} characters long")

        if not _PATTERN.fullmatch(name):
            raise InvalidBucketName(
                name,
                "must contain only lowercase letters, numbers, and hyphens, "
                "and must start and end with a letter or number",
            )

        if "--" in name:
            raise InvalidBucketName(name, "must not contain consecutive hyphens")

    @classmethod
    def is_valid(cls, name: str) -> bool:
        try:
            cls.validate(name)
            return True
        except InvalidBucketName:
            return False
