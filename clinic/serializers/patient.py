import bleach
from rest_framework import serializers

from ..models import Patient


def _clean(value):
    return bleach.clean((value or '').strip(), tags=set(), attributes={}, strip=True)


class EmergencyContactSerializer(serializers.Serializer):
    name = serializers.CharField(required=False, allow_blank=True, max_length=255)
    phone = serializers.CharField(required=False, allow_blank=True, max_length=32)
    relation = serializers.CharField(required=False, allow_blank=True, max_length=64)


class InsuranceDetailsSerializer(serializers.Serializer):
    provider = serializers.CharField(required=False, allow_blank=True, max_length=255)
    policyNumber = serializers.CharField(required=False, allow_blank=True, max_length=64)
    expiryDate = serializers.CharField(required=False, allow_blank=True, max_length=32)
    notes = serializers.CharField(required=False, allow_blank=True)


class PatientSerializer(serializers.ModelSerializer):
    patientId = serializers.CharField(source='patient_code', read_only=True)
    fullName = serializers.CharField(source='full_name', max_length=255)
    medicalHistory = serializers.CharField(source='medical_history', required=False, allow_blank=True)
    bloodGroup = serializers.CharField(source='blood_group', required=False, allow_blank=True, max_length=5)
    emergencyContact = EmergencyContactSerializer(source='emergency_contact', required=False)
    hasInsurance = serializers.BooleanField(source='has_insurance', required=False)
    insuranceDetails = InsuranceDetailsSerializer(source='insurance_details', required=False)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Patient
        fields = [
            'id', 'patientId', 'fullName', 'phone', 'address', 'age', 'gender', 'type',
            'symptoms', 'medicalHistory', 'allergies', 'bloodGroup', 'emergencyContact',
            'hasInsurance', 'insuranceDetails', 'createdAt',
        ]

    def validate_fullName(self, v):
        v = _clean(v)
        if len(v) < 2:
            raise serializers.ValidationError('Name must be at least 2 characters')
        return v

    def validate_phone(self, v):
        return _clean(v)

    def validate_address(self, v):
        return _clean(v)

    def validate_age(self, v):
        if v is not None and v > 150:
            raise serializers.ValidationError('Age is out of range')
        return v

    def validate(self, attrs):
        if not attrs.get('has_insurance', getattr(self.instance, 'has_insurance', False)):
            attrs['insurance_details'] = {}
        return attrs
