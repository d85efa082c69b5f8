from django.contrib import admin
from .models import Organization, OrgUser, OrgInvite


class OrgUserInline(admin.TabularInline):
    model = OrgUser
    extra = 0
    raw_id_fields = ("user",)


@admin.register(Organization)
class OrganizationAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "slug", "owner", "deleted_at", "created_at")
    search_fields = ("name", "slug", "uuid")
    list_filter = ("deleted_at", "created_at")
    raw_id_fields = ("owner",)
    readonly_fields = ("uuid", "created_at", "updated_at")
    inlines = [OrgUserInline]

    def get_queryset(self, request):
        # Soft-deleted organizations stay visible to staff
        return Organization.all_objects.select_related("owner")


@admin.register(OrgInvite)
class OrgInviteAdmin(admin.ModelAdmin):
    list_display = ("id", "org", "email", "role", "accepted_at", "declined_at", "expires_at", "deleted_at")
    list_filter = ("role", "accepted_at", "declined_at")
    search_fields = ("email", "token")
    raw_id_fields = ("org", "invited_by", "user")
    readonly_fields = ("uuid", "token", "created_at", "updated_at")

    def get_queryset(self, request):
        return OrgInvite.all_objects.select_related("org")
