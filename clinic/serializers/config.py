from decimal import Decimal

from rest_framework import serializers

from ..models import (
    Bank,
    Department,
    InsuranceProvider,
    LabTest,
    NurseService,
    OperationCatalog,
    PaymentMethod,
    Specialization,
    TaxRate,
    User,
)
from ..rbac import Permissions


class CatalogSerializer(serializers.ModelSerializer):
    isActive = serializers.BooleanField(source='is_active', required=False)

    class Meta:
        fields = ['id', 'name_en', 'name_ar', 'isActive']


def _catalog(model_cls, *extra):
    meta = type('Meta', (), {'model': model_cls, 'fields': CatalogSerializer.Meta.fields + list(extra)})
    return type(f'{model_cls.__name__}Serializer', (CatalogSerializer,), {'Meta': meta})


DepartmentSerializer = _catalog(Department, 'description_en', 'description_ar')
SpecializationSerializer = _catalog(Specialization, 'related_role')
InsuranceProviderSerializer = _catalog(InsuranceProvider)
BankSerializer = _catalog(Bank)
PaymentMethodSerializer = _catalog(PaymentMethod)
TaxRateSerializer = _catalog(TaxRate, 'rate')
LabTestSerializer = _catalog(LabTest, 'category_en', 'category_ar', 'cost', 'normal_range')
NurseServiceSerializer = _catalog(NurseService, 'description_en', 'description_ar', 'cost')


class OperationCatalogSerializer(CatalogSerializer):
    baseCost = serializers.DecimalField(source='base_cost', max_digits=12, decimal_places=2,
                                        min_value=Decimal('0'))

    class Meta:
        model = OperationCatalog
        fields = CatalogSerializer.Meta.fields + ['baseCost']


class SystemUserSerializer(serializers.ModelSerializer):
    fullName = serializers.CharField(source='full_name', required=False, allow_blank=True)
    isActive = serializers.BooleanField(source='is_active', required=False)
    password = serializers.CharField(write_only=True, required=False, min_length=8)

    class Meta:
        model = User
        fields = ['id', 'username', 'fullName', 'role', 'email', 'phone', 'isActive', 'password']

    def validate(self, attrs):
        if self.instance is None and not attrs.get('password'):
            raise serializers.ValidationError({'password': 'Password is required'})
        return attrs

    def create(self, validated_data):
        password = validated_data.pop('password')
        user = User(**validated_data)
        user.set_password(password)
        user.save()
        return user

    def update(self, instance, validated_data):
        password = validated_data.pop('password', None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        if password:
            instance.set_password(password)
        instance.save()
        return instance


class RolePermissionsSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=[c for c, _ in User.ROLE_CHOICES if c not in ('admin', 'manager')])
    permissions = serializers.ListField(child=serializers.ChoiceField(choices=Permissions.all()))
