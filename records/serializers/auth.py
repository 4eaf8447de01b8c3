from rest_framework import serializers


class LoginSerializer(serializers.Serializer):
    """Credentials for either login path.

    Staff sign in with ``username``; patients with ``national_id`` plus
    ``full_name``.  ``password`` is always required.
    """
    login_type = serializers.ChoiceField(choices=['staff', 'patient'], default='staff')
    username = serializers.CharField(required=False, allow_blank=True)
    national_id = serializers.CharField(required=False, allow_blank=True)
    full_name = serializers.CharField(required=False, allow_blank=True)
    password = serializers.CharField(trim_whitespace=False)

    def validate_password(self, v):
        if not v:
            raise serializers.ValidationError('Password is required')
        return v

    def validate(self, attrs):
        for key in ('username', 'national_id', 'full_name'):
            attrs[key] = (attrs.get(key) or '').strip()
        if attrs['login_type'] == 'patient':
            if not attrs['national_id'] or not attrs['full_name']:
                raise serializers.ValidationError('National ID and full name are required')
        elif not attrs['username']:
            raise serializers.ValidationError('Username is required')
        return attrs


class RefreshSerializer(serializers.Serializer):
    refresh = serializers.CharField()


class LogoutSerializer(serializers.Serializer):
    refresh = serializers.CharField(required=False, allow_blank=True)
