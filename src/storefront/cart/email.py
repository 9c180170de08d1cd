"""Contact email validation for carts."""

from protean.exceptions import ValidationError

_FORBIDDEN = (" ", "\t", "\n", ";", ",", "(", ")", '"', ":", "<", ">", "[", "]", "\\")


def validate_email(email):
    """Return the normalized address or raise ValidationError.

    Structural checks only: exactly one @, non-empty local and domain parts,
    a dotted domain without empty or hyphen-edged labels, no forbidden
    characters.
    """
    if not email or not isinstance(email, str):
        raise ValidationError({"email": ["Email is required"]})

    email = email.strip()
    if len(email) > 254 or email.count("@") != 1 or any(ch in email for ch in _FORBIDDEN):
        raise ValidationError({"email": [f"Invalid email address: {email!r}"]})

    local_part, domain_part = email.split("@", 1)
    if not local_part or local_part.startswith(".") or local_part.endswith(".") or ".." in local_part:
        raise ValidationError({"email": [f"Invalid email address: {email!r}"]})

    labels = domain_part.split(".")
    if len(labels) < 2 or any(not label or label.startswith("-") or label.endswith("-") for label in labels):
        raise ValidationError({"email": [f"Invalid email address: {email!r}"]})

    return f"{local_part}@{domain_part.lower()}"
