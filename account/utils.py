from .models import CustomUser


def find_user_by_id(user_id):
    """Return the user with this primary key, or None."""
    if user_id in (None, ''):
        return None
    try:
        return CustomUser.objects.filter(pk=int(user_id)).first()
    except (TypeError, ValueError):
        return None


def find_user_by_email(email):
    """Email lookup (emails are stored lowercase); returns None when nobody matches."""
    if not email:
        return None
    return CustomUser.objects.filter(email=email.strip().lower()).first()


def resolve_user(user_id=None, email=None):
    # The id wins whenever both identifiers are supplied
    if user_id not in (None, ''):
        return find_user_by_id(user_id)
    return find_user_by_email(email)
