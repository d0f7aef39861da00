from django.db import models
from django.contrib.auth.models import AbstractUser


class User(AbstractUser):
    email = models.EmailField(blank=True, null=True, unique=True)
    phone_number = models.CharField(max_length=15, blank=True, null=True, unique=True)
    is_verified = models.BooleanField(default=False)

    @property
    def is_customer(self):
        return hasattr(self, 'customer')

    @property
    def is_professional(self):
        return hasattr(self, 'professional')


class Customer(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='customer')
    location = models.CharField(max_length=100, blank=True, null=True)

    def __str__(self):
        return f"Customer: {self.user.username}"


class Professional(models.Model):
    """A service provider who can accept and complete jobs."""
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='professional')
    location = models.CharField(max_length=100, blank=True, null=True)
    skills = models.CharField(max_length=500, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"Professional: {self.user.username}"
