from rest_framework import serializers
from django.contrib.auth import get_user_model
from .models import Professional

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    role = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'username', 'first_name', 'last_name', 'email', 'phone_number', 'role']
        read_only_fields = fields

    def get_role(self, obj):
        if obj.is_superuser:
            return 'admin'
        if obj.is_professional:
            return 'professional'
        if obj.is_customer:
            return 'customer'
        return None


class PublicProfessionalSerializer(serializers.ModelSerializer):
    user = serializers.SerializerMethodField()

    class Meta:
        model = Professional
        fields = ['id', 'user', 'skills', 'location']

    def get_user(self, obj):
        user = obj.user
        return {
            'id': user.id,
            'first_name': user.first_name,
            'last_name': user.last_name,
        }
