"""
Client lookup by phone.
"""
import logging

from apps.clients.models import Client
from apps.core.utils.helpers import normalize_phone

logger = logging.getLogger(__name__)


def upsert_client(full_name, phone, email='', birth_date=None):
    """
    Find a client by normalised phone or create one.

    Must run inside the caller's atomic block. An existing client keeps
    its name; empty email and birth date are filled in from the request.

    Returns:
        Client instance
    """
    normalized = normalize_phone(phone)
    client, created = Client.objects.select_for_update().get_or_create(
        phone=normalized,
        defaults={
            'full_name': full_name,
            'email': email or '',
            'birth_date': birth_date,
        }
    )

    if created:
        logger.info(f"Created client {client.id} for phone {normalized}")
        return client

    changed = []
    if email and not client.email:
        client.email = email
        changed.append('email')
    if birth_date and not client.birth_date:
        client.birth_date = birth_date
        changed.append('birth_date')
    if changed:
        client.save(update_fields=changed + ['updated_at'])

    return client
