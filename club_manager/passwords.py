from werkzeug.security import check_password_hash, generate_password_hash


def hash_password(password):
    """Hash a password for storage in ``users.password``."""
    return generate_password_hash(password)


def verify_password(stored_hash, password):
    if not stored_hash or not password:
        return False
    return check_password_hash(stored_hash, password)
