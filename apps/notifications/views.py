from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi
from .models import Notification
from .serializers import NotificationSerializer


class NotificationListView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="List notifications for the authenticated user. Pass ?unread=true for unread only.",
        manual_parameters=[
            openapi.Parameter('unread', openapi.IN_QUERY, type=openapi.TYPE_BOOLEAN, required=False),
        ],
        responses={200: NotificationSerializer(many=True), 401: 'Unauthorized'}
    )
    def get(self, request):
        notifications = Notification.objects.filter(recipient=request.user)
        if request.query_params.get('unread') == 'true':
            notifications = notifications.filter(is_read=False)
        serializer = NotificationSerializer(notifications, many=True)
        return Response({'success': True, 'data': serializer.data})


class NotificationMarkReadView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Mark one of your notifications as read.",
        responses={200: NotificationSerializer, 401: 'Unauthorized', 404: 'Not Found'}
    )
    def post(self, request, pk):
        updated = Notification.objects.filter(pk=pk, recipient=request.user).update(is_read=True)
        if not updated:
            return Response(
                {'success': False, 'errorKind': 'NotFound', 'message': 'Notification not found'},
                status=status.HTTP_404_NOT_FOUND
            )
        notification = Notification.objects.get(pk=pk)
        return Response({'success': True, 'data': NotificationSerializer(notification).data})
