# groups/admin.py

from django.contrib import admin

from groups.models import ExpenseSplit, Group, GroupExpense, GroupMember


class GroupMemberInline(admin.TabularInline):
    model = GroupMember
    extra = 0
    fields = ("position", "member_kind", "member_user", "member_guest_name", "joined_at")
    readonly_fields = ("joined_at",)
    raw_id_fields = ("member_user",)


@admin.register(Group)
class GroupAdmin(admin.ModelAdmin):
    list_display = ("name", "created_by", "created_at")
    search_fields = ("name", "created_by__email")
    inlines = [GroupMemberInline]


class ExpenseSplitInline(admin.TabularInline):
    model = ExpenseSplit
    extra = 0
    can_delete = False
    readonly_fields = ("position", "member_kind", "member_user", "member_guest_name", "share")


@admin.register(GroupExpense)
class GroupExpenseAdmin(admin.ModelAdmin):
    list_display = ("description", "group", "payer_kind", "amount", "date")
    readonly_fields = ("created_by", "created_at")
    list_filter = ("payer_kind",)
    search_fields = ("description", "group__name")
    inlines = [ExpenseSplitInline]
