# users/serializers.py

from django.contrib.auth import get_user_model
from rest_framework import serializers

from users.models import DummyContact

User = get_user_model()


# ---------------- USER OUTPUT ----------------
class UserSerializer(serializers.ModelSerializer):
    """
    Safe user representation for frontend consumption.
    """

    display_name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "username",
            "first_name",
            "last_name",
            "display_name",
        ]


# ---------------- DUMMY CONTACTS ----------------
class DummyContactSerializer(serializers.ModelSerializer):
    class Meta:
        model = DummyContact
        fields = ["id", "name", "created_at"]
        read_only_fields = ("id", "created_at")

    def validate_name(self, value):
        v = (value or "").strip()
        if not v:
            raise serializers.ValidationError("name is required")

        owner = self.context["request"].user
        if DummyContact.objects.filter(owner=owner, name__iexact=v).exists():
            raise serializers.ValidationError("You already have a contact with this name")
        return v
