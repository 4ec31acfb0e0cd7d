# settlements/api/serializers.py

from rest_framework import serializers

from groups.api.serializers import party_repr
from ledger import counterparty as cp_mod
from ledger.api.serializers import CounterpartyField
from settlements.models import ContactAlias, Settlement


# ---------------- BALANCES ----------------
class BreakdownSerializer(serializers.Serializer):
    source = serializers.CharField()
    name = serializers.CharField()
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)


class BalanceSerializer(serializers.Serializer):
    key = serializers.CharField()
    user_id = serializers.CharField(allow_null=True)
    name = serializers.CharField()
    total = serializers.DecimalField(max_digits=14, decimal_places=2)
    breakdown = BreakdownSerializer(many=True)


# ---------------- SETTLEMENTS ----------------
class SettlementSerializer(serializers.ModelSerializer):
    group_name = serializers.CharField(source="group.name", read_only=True)
    payer = serializers.SerializerMethodField()
    payee = serializers.SerializerMethodField()

    class Meta:
        model = Settlement
        fields = ["id", "group", "group_name", "payer", "payee", "amount", "date", "created_at"]
        read_only_fields = fields

    def get_payer(self, obj) -> dict:
        return party_repr(obj.payer_kind, obj.payer_user, obj.payer_guest_name)

    def get_payee(self, obj) -> dict:
        return party_repr(obj.payee_kind, obj.payee_user, obj.payee_guest_name)


class SettlementCreateSerializer(serializers.Serializer):
    """
    payer defaults to the caller; payee is {"user_id": ...} or {"guest_name": ...}.
    """

    group_id = serializers.IntegerField()
    payer = CounterpartyField(required=False)
    payee = CounterpartyField()
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    date = serializers.DateTimeField(required=False, allow_null=True)

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("amount must be > 0")
        return value

    def validate(self, attrs):
        for field in ("payer", "payee"):
            if isinstance(attrs.get(field), cp_mod.DummyContact):
                raise serializers.ValidationError({field: "Dummy contacts cannot take part in group settlements"})
        return attrs


class DateRangeSerializer(serializers.Serializer):
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)


# ---------------- ALIASES ----------------
class ContactAliasSerializer(serializers.ModelSerializer):
    owner_id = serializers.UUIDField(source="owner.id", read_only=True)
    user_id = serializers.UUIDField(source="user.id", read_only=True)
    user_name = serializers.CharField(source="user.display_name", read_only=True)

    class Meta:
        model = ContactAlias
        fields = ["id", "owner_id", "display_name", "user_id", "user_name", "confirmed", "confirmed_at", "created_at"]
        read_only_fields = fields


class ContactAliasCreateSerializer(serializers.Serializer):
    display_name = serializers.CharField(max_length=150)
    email = serializers.EmailField(required=False, allow_blank=True)
    user_id = serializers.UUIDField(required=False, allow_null=True)

    def validate(self, attrs):
        if bool(attrs.get("email")) == bool(attrs.get("user_id")):
            raise serializers.ValidationError("Provide exactly one of email or user_id")
        return attrs
