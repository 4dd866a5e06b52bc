from decimal import Decimal

from rest_framework import serializers

from ..models import Appointment, MedicalStaff, Patient


class AppointmentCreateSerializer(serializers.Serializer):
    patientId = serializers.PrimaryKeyRelatedField(queryset=Patient.objects.all())
    staffId = serializers.PrimaryKeyRelatedField(queryset=MedicalStaff.objects.all())
    datetime = serializers.DateTimeField()
    type = serializers.CharField(max_length=50, required=False, default='Consultation')
    reason = serializers.CharField(required=False, allow_blank=True, default='')
    customFee = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'),
                                         required=False, allow_null=True)


class AppointmentUpdateSerializer(serializers.Serializer):
    staffId = serializers.PrimaryKeyRelatedField(queryset=MedicalStaff.objects.all(), required=False)
    datetime = serializers.DateTimeField(required=False)
    type = serializers.CharField(max_length=50, required=False)
    reason = serializers.CharField(required=False, allow_blank=True)


class AppointmentStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[c for c, _ in Appointment.STATUS_CHOICES])
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255, default='')


class QueueQuerySerializer(serializers.Serializer):
    date = serializers.DateField(required=False)
