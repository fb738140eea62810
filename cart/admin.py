"""Admin registration for cart items.

Support staff can browse line items by owner, clear a cart, and carry a
guest cart over to a user account (for customers who signed in on another
device before the merge ran).
"""

from django import forms
from django.contrib import admin, messages
from django.contrib.admin.helpers import ActionForm
from django.contrib.auth import get_user_model
from django.db import DatabaseError

from .context import get_cart_context
from .local import LocalStoreUnavailable
from .models import CartItem
from .owners import GuestOwner, UserOwner
from .services import CartError


class CartMergeActionForm(ActionForm):
    """Extra inputs for admin actions.

    Provides a `user` field so support can merge a guest cart into a user.
    """

    user = forms.ModelChoiceField(
        queryset=get_user_model().objects.all(),
        required=False,
        label="Target user for merge (guest items only)",
        help_text="Select when using 'Merge guest cart into user'.",
    )


class OwnerTypeFilter(admin.SimpleListFilter):
    title = "owner type"
    parameter_name = "owner_type"

    def lookups(self, request, model_admin):
        return (
            ("user", "User carts"),
            ("guest", "Guest carts"),
        )

    def queryset(self, request, queryset):
        value = self.value()
        if value == "user":
            return queryset.filter(user__isnull=False)
        if value == "guest":
            return queryset.filter(user__isnull=True)
        return queryset


def _owners(queryset):
    """Distinct cart owners among the selected line items."""

    owners = []
    for user_id, session_id in queryset.order_by().values_list("user_id", "session_id").distinct():
        owner = UserOwner(user_id) if user_id else GuestOwner(session_id)
        if owner not in owners:
            owners.append(owner)
    return owners


@admin.register(CartItem)
class CartItemAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "session_id", "variant", "quantity", "added_at", "updated_at")
    list_filter = (OwnerTypeFilter,)
    search_fields = ("variant__sku", "user__email", "user__username", "session_id")
    ordering = ("-updated_at",)
    readonly_fields = ("added_at", "updated_at")
    raw_id_fields = ("user", "variant")
    list_select_related = ("user", "variant")

    action_form = CartMergeActionForm

    @admin.action(description="Clear cart for the selected items' owners")
    def action_clear_cart(self, request, queryset):
        engine = get_cart_context().engine()
        successes = 0
        failures = 0
        for owner in _owners(queryset):
            try:
                engine.clear(owner)
                successes += 1
            except (CartError, DatabaseError, LocalStoreUnavailable):
                failures += 1
        if successes:
            messages.success(request, f"Cleared {successes} cart(s).")
        if failures:
            messages.error(request, f"Failed to clear {failures} cart(s).")

    @admin.action(description="Merge guest cart into selected user")
    def action_merge_guest_cart_to_user(self, request, queryset):
        User = get_user_model()
        user_id = request.POST.get("user")
        if not user_id:
            messages.error(request, "Please select a target user in the action form.")
            return
        try:
            target_user = User.objects.get(pk=user_id)
        except User.DoesNotExist:
            messages.error(request, "Selected user not found.")
            return

        engine = get_cart_context().engine()
        merged = 0
        skipped = 0
        failures = 0
        for owner in _owners(queryset):
            # Only applicable to guest carts
            if not owner.is_guest:
                skipped += 1
                continue
            try:
                report = engine.merge_on_login(session_id=owner.session_id, user_id=target_user.id)
            except (DatabaseError, LocalStoreUnavailable):
                failures += 1
                continue
            merged += 1
            if report.failed:
                messages.warning(request, f"Session {owner.session_id}: {report.summary}.")
        if merged:
            messages.success(
                request, f"Merged {merged} guest cart(s) into {target_user.email or target_user.username}."
            )
        if skipped:
            messages.info(request, f"Skipped {skipped} user-bound cart(s); merge applies to guest carts only.")
        if failures:
            messages.error(request, f"Failed to merge {failures} cart(s).")

    actions = [
        "action_clear_cart",
        "action_merge_guest_cart_to_user",
    ]
