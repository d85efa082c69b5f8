from django.contrib.auth import get_user_model
from rest_framework import serializers

from app.common import keys

from .models import Organization, OrgUser, OrgInvite, Role


class OrganizationFieldsSerializer(serializers.Serializer):
    """Validation rules for an organization's name and description."""

    name = serializers.CharField(min_length=2, max_length=255)
    description = serializers.CharField(max_length=1000, allow_null=True, allow_blank=True, required=False)

    def __init__(self, *args, organization=None, **kwargs):
        self.organization = organization
        super().__init__(*args, **kwargs)
        # Copy is resolved per instance so locale reloads are picked up
        self.fields['name'].error_messages.update(
            {
                'required': keys.t('orgs.validation.name_required'),
                'null': keys.t('orgs.validation.name_required'),
                'blank': keys.t('orgs.validation.name_required'),
                'min_length': keys.t('orgs.validation.name_min'),
                'max_length': keys.t('orgs.validation.name_max'),
            }
        )
        self.fields['description'].error_messages['max_length'] = keys.t('orgs.validation.description_max')

    def validate_name(self, value):
        qs = Organization.objects.filter(name=value)
        if self.organization is not None and self.organization.pk:
            qs = qs.exclude(pk=self.organization.pk)
        if qs.exists():
            raise serializers.ValidationError(keys.t('orgs.validation.name_unique'))
        return value


class UserBriefSerializer(serializers.ModelSerializer):
    class Meta:
        model = get_user_model()
        fields = ('id', 'username', 'email')


class OrgUserSerializer(serializers.ModelSerializer):
    user = UserBriefSerializer(read_only=True)

    class Meta:
        model = OrgUser
        fields = ('user', 'role', 'is_active', 'created_at')


class MemberAddSerializer(serializers.Serializer):
    user_id = serializers.IntegerField(required=False)
    # Alternative to user_id
    email = serializers.EmailField(required=False)
    role = serializers.ChoiceField(choices=Role.choices, required=False, default=Role.MEMBER)
    is_active = serializers.BooleanField(required=False, default=True)

    def validate(self, attrs):
        if attrs.get('user_id') is None and not attrs.get('email'):
            raise serializers.ValidationError({'user_id': ['user_id or email is required.']})
        return attrs


class MemberUpdateSerializer(serializers.Serializer):
    user_id = serializers.IntegerField()
    role = serializers.ChoiceField(choices=Role.choices, required=False)
    is_active = serializers.BooleanField(required=False)


class OrganizationSerializer(serializers.ModelSerializer):
    owner = UserBriefSerializer(read_only=True)

    class Meta:
        model = Organization
        fields = ('id', 'uuid', 'name', 'slug', 'description', 'owner', 'settings', 'created_at', 'updated_at')
        read_only_fields = fields


class OrgInviteSerializer(serializers.ModelSerializer):
    state = serializers.CharField(read_only=True)

    class Meta:
        model = OrgInvite
        fields = (
            'id',
            'uuid',
            'org',
            'email',
            'role',
            'state',
            'created_at',
            'accepted_at',
            'declined_at',
            'expires_at',
        )
        read_only_fields = fields


class InviteCreateSerializer(serializers.Serializer):
    # Address syntax is checked by the invitation core (InvalidEmail)
    email = serializers.CharField()
    role = serializers.ChoiceField(choices=Role.choices, required=False, default=Role.MEMBER)
    expiration_days = serializers.IntegerField(required=False, min_value=1, max_value=365)


class InviteResendSerializer(serializers.Serializer):
    expiration_days = serializers.IntegerField(required=False, min_value=1, max_value=365)


class OrganizationCreateSerializer(serializers.Serializer):
    # Name and description rules are enforced by the create action
    name = serializers.CharField(required=False, allow_null=True, allow_blank=True, trim_whitespace=False)
    description = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    default = serializers.BooleanField(required=False, allow_null=True, default=None)
