"""
Core serializers
"""
from rest_framework import serializers


class ErrorResponseSerializer(serializers.Serializer):
    """Error body produced by the custom exception handler"""
    error = serializers.BooleanField(default=True)
    message = serializers.CharField()
    code = serializers.CharField()
    status_code = serializers.IntegerField()
