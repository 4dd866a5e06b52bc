from decimal import Decimal

from rest_framework import serializers

from ..models import LabTest, MedicalStaff, NurseService, Patient


class LabRequestCreateSerializer(serializers.Serializer):
    patientId = serializers.PrimaryKeyRelatedField(queryset=Patient.objects.all())
    testIds = serializers.PrimaryKeyRelatedField(queryset=LabTest.objects.filter(is_active=True), many=True,
                                                 allow_empty=False)


class LabResultsSerializer(serializers.Serializer):
    results = serializers.DictField()


class NurseRequestCreateSerializer(serializers.Serializer):
    patientId = serializers.PrimaryKeyRelatedField(queryset=Patient.objects.all())
    serviceId = serializers.PrimaryKeyRelatedField(queryset=NurseService.objects.filter(is_active=True))
    staffId = serializers.PrimaryKeyRelatedField(queryset=MedicalStaff.objects.all(), required=False,
                                                 allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class OperationCreateSerializer(serializers.Serializer):
    patientId = serializers.PrimaryKeyRelatedField(queryset=Patient.objects.all())
    doctorId = serializers.PrimaryKeyRelatedField(queryset=MedicalStaff.objects.all(), required=False,
                                                  allow_null=True)
    operationName = serializers.CharField(max_length=255)
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class CostLineSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=255)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'))


class OperationProcessSerializer(serializers.Serializer):
    items = CostLineSerializer(many=True, allow_empty=False)
