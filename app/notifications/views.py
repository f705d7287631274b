"""
Views for notification API.

This module provides the ViewSet for notification endpoints.

ViewSets:
    NotificationViewSet: ReadOnlyModelViewSet with custom actions for read
        status and dispatch

Endpoints:
    GET /api/v1/notifications/ - List user's notifications (paginated, filtered)
    GET /api/v1/notifications/{id}/ - Get notification detail
    GET /api/v1/notifications/unread/ - List unread notifications
    GET /api/v1/notifications/unread-count/ - Get unread count
    POST /api/v1/notifications/{id}/read/ - Mark single notification as read
    POST /api/v1/notifications/read-all/ - Mark all notifications as read
    POST /api/v1/notifications/dispatch/ - Queue a notification (staff only)

Usage:
    # In urls.py
    from rest_framework.routers import DefaultRouter
    from notifications.views import NotificationViewSet

    router = DefaultRouter()
    router.register(r"", NotificationViewSet, basename="notification")
"""

from __future__ import annotations

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response

from drf_spectacular.utils import (
    extend_schema,
    extend_schema_view,
    OpenApiParameter,
    OpenApiResponse,
)

from notifications.exceptions import DispatchError, InvalidTaskError
from notifications.models import Notification
from notifications.serializers import (
    DispatchNotificationSerializer,
    DispatchResponseSerializer,
    MarkAllReadResponseSerializer,
    MarkReadResponseSerializer,
    NotificationSerializer,
    UnreadCountSerializer,
)
from notifications.services import NotificationService, get_notifier


@extend_schema_view(
    list=extend_schema(
        operation_id="list_notifications",
        summary="List notifications",
        description=(
            "Get paginated list of notifications for the authenticated user, "
            "newest first. Supports filtering by read status."
        ),
        parameters=[
            OpenApiParameter(
                name="is_read",
                type=bool,
                location=OpenApiParameter.QUERY,
                description="Filter by read status (true/false)",
                required=False,
            ),
        ],
        tags=["Notifications - Inbox"],
    ),
    retrieve=extend_schema(
        operation_id="get_notification",
        summary="Get notification",
        description="Get details of a specific notification.",
        tags=["Notifications - Inbox"],
    ),
)
class NotificationViewSet(viewsets.ReadOnlyModelViewSet):
    """
    ViewSet for notification operations.

    Provides:
    - list: GET / - List user's notifications with filtering
    - retrieve: GET /{id}/ - Get notification detail
    - unread: GET /unread/ - List unread notifications
    - unread_count: GET /unread-count/ - Get badge count
    - read: POST /{id}/read/ - Mark single as read
    - read_all: POST /read-all/ - Mark all as read
    - dispatch_notification: POST /dispatch/ - Queue a notification

    Permissions:
    - All endpoints require authentication
    - Users can only access their own notifications
    - Dispatch is limited to staff users
    """

    permission_classes = [IsAuthenticated]
    serializer_class = NotificationSerializer
    lookup_value_regex = r"\d+"

    def get_permissions(self):
        if self.action == "dispatch_notification":
            return [IsAdminUser()]
        return super().get_permissions()

    def get_queryset(self):
        """
        Get queryset filtered to user's notifications.

        Supports query parameters:
        - is_read: "true" or "false" to filter by read status

        Returns:
            QuerySet of Notification objects for current user
        """
        queryset = Notification.objects.filter(recipient=self.request.user)

        is_read = self.request.query_params.get("is_read")
        if is_read is not None:
            queryset = queryset.filter(is_read=is_read.lower() == "true")

        return queryset

    @extend_schema(
        operation_id="list_unread_notifications",
        summary="List unread notifications",
        description="Get paginated list of unread notifications, newest first.",
        responses={200: NotificationSerializer(many=True)},
        tags=["Notifications - Inbox"],
    )
    @action(detail=False, methods=["get"])
    def unread(self, request):
        """List the caller's unread notifications."""
        queryset = NotificationService.list_unread(request.user)

        page = self.paginate_queryset(queryset)
        if page is not None:
            serializer = self.get_serializer(page, many=True)
            return self.get_paginated_response(serializer.data)

        serializer = self.get_serializer(queryset, many=True)
        return Response(serializer.data)

    @extend_schema(
        operation_id="get_unread_notification_count",
        summary="Get unread notification count",
        description="Get the count of unread notifications for badge display.",
        responses={200: UnreadCountSerializer},
        tags=["Notifications - Inbox"],
    )
    @action(detail=False, methods=["get"], url_path="unread-count")
    def unread_count(self, request):
        """
        Get count of unread notifications.

        Returns:
            {"unread_count": <int>}
        """
        count = NotificationService.list_unread(request.user).count()

        serializer = UnreadCountSerializer({"unread_count": count})
        return Response(serializer.data)

    @extend_schema(
        operation_id="mark_notification_read",
        summary="Mark notification as read",
        description=(
            "Mark a single notification as read. "
            "This operation is idempotent - repeating it returns the original read_at."
        ),
        request=None,
        responses={
            200: MarkReadResponseSerializer,
            400: OpenApiResponse(description="Failed to mark notification as read"),
            404: OpenApiResponse(description="Notification not found"),
        },
        tags=["Notifications - Inbox"],
    )
    @action(detail=True, methods=["post"])
    def read(self, request, pk=None):
        """
        Mark single notification as read.

        Returns 404 if notification doesn't exist or belongs to another user.

        Returns:
            {"id", "is_read", "read_at", "already_read"}
        """
        try:
            notification = Notification.objects.get(
                pk=pk,
                recipient=request.user,
            )
        except Notification.DoesNotExist:
            return Response(
                {"detail": "Not found."},
                status=status.HTTP_404_NOT_FOUND,
            )

        already_read = notification.is_read
        result = NotificationService.mark_as_read(notification, request.user)

        if not result.success:
            return Response(
                {"detail": result.error},
                status=status.HTTP_400_BAD_REQUEST,
            )

        serializer = MarkReadResponseSerializer(
            {
                "id": result.data.id,
                "is_read": result.data.is_read,
                "read_at": result.data.read_at,
                "already_read": already_read,
            }
        )
        return Response(serializer.data)

    @extend_schema(
        operation_id="mark_all_notifications_read",
        summary="Mark all notifications as read",
        description="Mark all unread notifications for the authenticated user as read.",
        request=None,
        responses={200: MarkAllReadResponseSerializer},
        tags=["Notifications - Inbox"],
    )
    @action(detail=False, methods=["post"], url_path="read-all")
    def read_all(self, request):
        """
        Mark all user's notifications as read.

        Returns:
            {"marked_count": <int>}
        """
        result = NotificationService.mark_all_as_read(request.user)

        serializer = MarkAllReadResponseSerializer({"marked_count": result.data})
        return Response(serializer.data)

    @extend_schema(
        operation_id="dispatch_notification",
        summary="Dispatch notification",
        description=(
            "Queue a notification for asynchronous creation. Returns as soon as "
            "the queue accepts it; the recipient is checked by the worker."
        ),
        request=DispatchNotificationSerializer,
        responses={
            202: DispatchResponseSerializer,
            400: OpenApiResponse(description="Invalid notification fields"),
            503: OpenApiResponse(description="Notification queue unavailable"),
        },
        tags=["Notifications - Dispatch"],
    )
    @action(detail=False, methods=["post"], url_path="dispatch", url_name="dispatch")
    def dispatch_notification(self, request):
        """
        Queue a notification.

        Returns:
            202 {"detail", "recipient_id", "idempotency_key"} when queued,
            503 with the error payload when the queue is unavailable
        """
        serializer = DispatchNotificationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            task = get_notifier().notify(**serializer.validated_data)
        except InvalidTaskError as e:
            return Response(e.to_dict(), status=status.HTTP_400_BAD_REQUEST)
        except DispatchError as e:
            return Response(e.to_dict(), status=status.HTTP_503_SERVICE_UNAVAILABLE)

        response = DispatchResponseSerializer(
            {
                "detail": "Notification queued",
                "recipient_id": task.recipient_id,
                "idempotency_key": task.idempotency_key,
            }
        )
        return Response(response.data, status=status.HTTP_202_ACCEPTED)
