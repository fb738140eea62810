"""Account serializers: profile, registration, sign-in and sign-out."""

from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers
from rest_framework_simplejwt.tokens import RefreshToken, TokenError

from .models import User


class ProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["id", "username", "email", "phone", "first_name", "last_name"]
        read_only_fields = fields


class RegistrationSerializer(serializers.ModelSerializer):
    """Create a shopper account.

    Username and email are unique regardless of case; the password goes
    through Django's validators before it is hashed.
    """

    password = serializers.CharField(write_only=True, style={"input_type": "password"})

    class Meta:
        model = User
        fields = ["username", "email", "phone", "password", "first_name", "last_name"]

    def validate_username(self, value: str) -> str:
        if User.objects.filter(username__iexact=value).exists():
            raise serializers.ValidationError("Username is already taken.")
        return value

    def validate_email(self, value: str) -> str:
        value = value.strip().lower()
        if User.objects.filter(email=value).exists():
            raise serializers.ValidationError("Email is already registered.")
        return value

    def validate(self, attrs):
        candidate = User(username=attrs.get("username", ""), email=attrs.get("email", ""))
        try:
            validate_password(attrs["password"], user=candidate)
        except DjangoValidationError as exc:
            raise serializers.ValidationError({"password": list(exc.messages)})
        return attrs

    def create(self, validated_data):
        password = validated_data.pop("password")
        return User.objects.create_user(password=password, **validated_data)


class SignInSerializer(serializers.Serializer):
    """Exchange an email or E.164 phone number plus password for JWTs.

    `cart_items` is the cart a client kept on the device while signed out.
    It is not validated here: the login hook parses it leniently so a bad
    cart can never fail the sign-in. The authenticated user is left on
    `self.user`.
    """

    identifier = serializers.CharField()
    password = serializers.CharField(write_only=True, style={"input_type": "password"})
    cart_items = serializers.JSONField(
        required=False,
        write_only=True,
        help_text="Device-held cart: a list of {product_variant_id, quantity}",
    )

    user = None

    def _lookup(self, identifier: str):
        if "@" in identifier:
            return User.objects.filter(email=identifier.lower()).first()
        return User.objects.filter(phone=identifier).first()

    def validate(self, attrs):
        identifier = attrs["identifier"].strip()
        user = self._lookup(identifier) if identifier else None
        if user is None or not user.is_active or not user.check_password(attrs["password"]):
            raise serializers.ValidationError({"detail": "Invalid credentials."})

        self.user = user
        refresh = RefreshToken.for_user(user)
        return {"access": str(refresh.access_token), "refresh": str(refresh)}


class SignOutSerializer(serializers.Serializer):
    """Validate a refresh token and blacklist it on `save()`."""

    refresh = serializers.CharField()

    def validate_refresh(self, value: str) -> RefreshToken:
        try:
            return RefreshToken(value)
        except TokenError:
            raise serializers.ValidationError("Invalid or expired refresh token.")

    def save(self, **kwargs):
        self.validated_data["refresh"].blacklist()
