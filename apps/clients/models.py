"""
Client model
"""
from django.db import models
from apps.core.models import BaseModel
from apps.core.validators import validate_phone_number


class Client(BaseModel):
    """
    A person paying for trainings, identified by normalised phone
    """
    full_name = models.CharField(max_length=255)
    phone = models.CharField(max_length=20, unique=True, validators=[validate_phone_number])
    email = models.EmailField(blank=True)
    birth_date = models.DateField(null=True, blank=True)

    class Meta:
        db_table = 'clients'
        verbose_name = 'Client'
        verbose_name_plural = 'Clients'
        ordering = ['full_name']

    def __str__(self):
        return f"{self.full_name} ({self.phone})"
