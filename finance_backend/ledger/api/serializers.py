# ledger/api/serializers.py

from rest_framework import serializers

from ledger import counterparty as cp_mod
from ledger.models import ConfirmationRequest, LedgerEntry


class CounterpartyField(serializers.Field):
    """
    Read: {"kind": "user"|"guest"|"dummy", "id": ..., "name": ...}
    Write: {"user_id": ...} | {"guest_name": ...} | {"contact_id": ...}
    """

    def to_representation(self, entry):
        kind = entry.counterparty_kind
        if kind == cp_mod.KIND_USER and entry.counterparty_user is not None:
            return {
                "kind": kind,
                "id": str(entry.counterparty_user_id),
                "name": entry.counterparty_user.display_name,
            }
        if kind == cp_mod.KIND_GUEST:
            return {"kind": kind, "id": None, "name": entry.counterparty_guest_name}
        if kind == cp_mod.KIND_DUMMY and entry.counterparty_contact is not None:
            return {
                "kind": kind,
                "id": entry.counterparty_contact_id,
                "name": entry.counterparty_contact.name,
            }
        return None

    def to_internal_value(self, data):
        if not isinstance(data, dict):
            raise serializers.ValidationError("counterparty must be an object")
        try:
            return cp_mod.parse(data)
        except (TypeError, ValueError) as exc:
            raise serializers.ValidationError(str(exc))


# ---------------- ENTRY OUTPUT ----------------
class LedgerEntrySerializer(serializers.ModelSerializer):
    counterparty = CounterpartyField(source="*", read_only=True)

    class Meta:
        model = LedgerEntry
        fields = [
            "id",
            "kind",
            "amount",
            "category",
            "investment_type",
            "description",
            "date",
            "due_date",
            "counterparty",
            "linked_entry",
            "confirmation_state",
            "is_settled",
            "settlement_state",
            "created_at",
        ]
        read_only_fields = fields


# ---------------- ENTRY INPUT ----------------
class LedgerEntryCreateSerializer(serializers.Serializer):
    kind = serializers.ChoiceField(choices=LedgerEntry.KIND_CHOICES)
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    category = serializers.CharField(required=False, allow_blank=True, default="")
    investment_type = serializers.ChoiceField(
        choices=LedgerEntry.INVESTMENT_CHOICES, required=False, allow_blank=True, default=""
    )
    description = serializers.CharField(required=False, allow_blank=True, default="", max_length=255)
    date = serializers.DateTimeField(required=False, allow_null=True)
    due_date = serializers.DateField(required=False, allow_null=True)
    counterparty = CounterpartyField(required=False)

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("amount must be > 0")
        return value

    def validate(self, attrs):
        kind = attrs["kind"]
        if kind in LedgerEntry.DEBT_KINDS:
            if not attrs.get("counterparty"):
                raise serializers.ValidationError({"counterparty": "Lend/borrow entries require a counterparty"})
        else:
            if attrs.get("counterparty"):
                raise serializers.ValidationError({"counterparty": "Only lend/borrow entries have a counterparty"})
            if attrs.get("due_date"):
                raise serializers.ValidationError({"due_date": "Only lend/borrow entries have a due date"})
            if not (attrs.get("category") or "").strip():
                raise serializers.ValidationError({"category": "Category is required"})
        return attrs


class EntryFilterSerializer(serializers.Serializer):
    kind = serializers.ChoiceField(choices=LedgerEntry.KIND_CHOICES, required=False)
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)


class AnalysisSerializer(serializers.Serializer):
    total_income = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_expense = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_investment_buy = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_investment_sell = serializers.DecimalField(max_digits=14, decimal_places=2)


# ---------------- CONFIRMATION REQUESTS ----------------
class ConfirmationRequestSerializer(serializers.ModelSerializer):
    initiator_id = serializers.UUIDField(source="initiator.id", read_only=True)
    initiator_name = serializers.CharField(source="initiator.display_name", read_only=True)

    class Meta:
        model = ConfirmationRequest
        fields = [
            "id",
            "request_kind",
            "initiator_id",
            "initiator_name",
            "target_entry",
            "amount",
            "description",
            "state",
            "created_at",
            "resolved_at",
        ]
        read_only_fields = fields
