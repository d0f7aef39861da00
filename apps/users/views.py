from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status, permissions
from drf_yasg.utils import swagger_auto_schema
from .serializers import UserSerializer


class UserProfileView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Profile of the authenticated user, including their marketplace role.",
        responses={200: UserSerializer, 401: 'Unauthorized'}
    )
    def get(self, request):
        serializer = UserSerializer(request.user)
        return Response({'success': True, 'data': serializer.data}, status=status.HTTP_200_OK)
