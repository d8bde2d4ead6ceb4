from rest_framework import permissions


class IsSiteOwner(permissions.BasePermission):
    """Only the owner of a site may read or change it."""

    def has_object_permission(self, request, view, obj):
        return obj.user_id == request.user.id
