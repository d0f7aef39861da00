from rest_framework import permissions

from core.constants import ROLE_ADMIN, ROLE_CUSTOMER, ROLE_PROFESSIONAL
from core.exceptions import NotAuthorized


class IsCustomer(permissions.BasePermission):
    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        return hasattr(request.user, 'customer')


class IsProfessional(permissions.BasePermission):
    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        return hasattr(request.user, 'professional')


class IsAdmin(permissions.BasePermission):
    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        return request.user.is_superuser


def roles_of(user):
    roles = set()
    if user.is_superuser:
        roles.add(ROLE_ADMIN)
    if hasattr(user, 'professional'):
        roles.add(ROLE_PROFESSIONAL)
    if hasattr(user, 'customer'):
        roles.add(ROLE_CUSTOMER)
    return roles


def require_role(user, role):
    if role not in roles_of(user):
        raise NotAuthorized(f"User {user.pk} is not a {role}")


def party_role(job, user):
    """The role ``user`` plays on ``job``, or None if they are not a party to it."""
    if job.customer_id == user.pk:
        return ROLE_CUSTOMER
    if job.professional_id is not None and job.professional.user_id == user.pk:
        return ROLE_PROFESSIONAL
    if user.is_superuser:
        return ROLE_ADMIN
    return None


def require_party(job, user, *roles):
    role = party_role(job, user)
    if role is None or (roles and role not in roles):
        raise NotAuthorized(f"User {user.pk} cannot act on job #{job.pk}")
    return role
