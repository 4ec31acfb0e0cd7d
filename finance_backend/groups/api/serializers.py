# groups/api/serializers.py

from rest_framework import serializers

from groups.models import ExpenseSplit, Group, GroupExpense, GroupMember
from ledger import counterparty as cp_mod
from ledger.api.serializers import CounterpartyField


def party_repr(kind, user, guest_name) -> dict:
    if kind == cp_mod.KIND_USER and user is not None:
        return {"kind": kind, "id": str(user.pk), "name": user.display_name}
    return {"kind": cp_mod.KIND_GUEST, "id": None, "name": guest_name}


# ---------------- ROSTER ----------------
class GroupMemberSerializer(serializers.ModelSerializer):
    member = serializers.SerializerMethodField()

    class Meta:
        model = GroupMember
        fields = ["id", "member", "position", "joined_at"]
        read_only_fields = fields

    def get_member(self, obj) -> dict:
        return party_repr(obj.member_kind, obj.member_user, obj.member_guest_name)


class GroupSerializer(serializers.ModelSerializer):
    created_by = serializers.UUIDField(source="created_by_id", read_only=True)
    members = GroupMemberSerializer(many=True, read_only=True)

    class Meta:
        model = Group
        fields = ["id", "name", "created_by", "created_at", "members"]
        read_only_fields = ("id", "created_by", "created_at", "members")


class GroupCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)


class AddMemberSerializer(serializers.Serializer):
    email = serializers.EmailField(required=False, allow_blank=True)
    guest_name = serializers.CharField(required=False, allow_blank=True, max_length=150)

    def validate(self, attrs):
        email = (attrs.get("email") or "").strip()
        guest_name = (attrs.get("guest_name") or "").strip()
        if bool(email) == bool(guest_name):
            raise serializers.ValidationError("Please provide email or guest_name")
        return {"email": email, "guest_name": guest_name}


# ---------------- EXPENSES ----------------
class ExpenseSplitSerializer(serializers.ModelSerializer):
    member = serializers.SerializerMethodField()

    class Meta:
        model = ExpenseSplit
        fields = ["member", "share"]
        read_only_fields = fields

    def get_member(self, obj) -> dict:
        return party_repr(obj.member_kind, obj.member_user, obj.member_guest_name)


class GroupExpenseSerializer(serializers.ModelSerializer):
    payer = serializers.SerializerMethodField()
    splits = ExpenseSplitSerializer(many=True, read_only=True)

    class Meta:
        model = GroupExpense
        fields = ["id", "group", "payer", "amount", "description", "date", "splits", "created_at"]
        read_only_fields = fields

    def get_payer(self, obj) -> dict:
        return party_repr(obj.payer_kind, obj.payer_user, obj.payer_guest_name)


class GroupExpenseCreateSerializer(serializers.Serializer):
    """
    payer: {"user_id": ...} or {"guest_name": ...}; defaults to the caller.
    """

    payer = CounterpartyField(required=False)
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    description = serializers.CharField(max_length=255)
    date = serializers.DateTimeField(required=False, allow_null=True)

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("amount must be > 0")
        return value

    def validate_payer(self, value):
        if isinstance(value, cp_mod.DummyContact):
            raise serializers.ValidationError("Dummy contacts cannot pay group expenses")
        return value


class DateRangeSerializer(serializers.Serializer):
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)


class TallyRowSerializer(serializers.Serializer):
    key = serializers.CharField()
    name = serializers.CharField()
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
