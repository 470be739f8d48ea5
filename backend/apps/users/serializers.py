from rest_framework import serializers


class UserSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    email = serializers.EmailField()
    name = serializers.CharField()
    role = serializers.CharField()


class UserProfileSerializer(UserSerializer):
    address = serializers.CharField(allow_null=True, required=False)
    phone = serializers.CharField(allow_null=True, required=False)


class UserSummarySerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    email = serializers.EmailField()
