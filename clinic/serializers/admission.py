from decimal import Decimal

from rest_framework import serializers

from ..models import Admission, Bed, MedicalStaff, Patient


class BedSerializer(serializers.ModelSerializer):
    roomNumber = serializers.CharField(source='room_number', max_length=20)
    costPerDay = serializers.DecimalField(source='cost_per_day', max_digits=12, decimal_places=2,
                                          min_value=Decimal('0'))

    class Meta:
        model = Bed
        fields = ['id', 'roomNumber', 'type', 'status', 'costPerDay']
        read_only_fields = ['status']


class BedStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[c for c, _ in Bed.STATUS_CHOICES])


class AdmissionCreateSerializer(serializers.Serializer):
    patientId = serializers.PrimaryKeyRelatedField(queryset=Patient.objects.all())
    bedId = serializers.IntegerField()
    doctorId = serializers.PrimaryKeyRelatedField(queryset=MedicalStaff.objects.all(), required=False,
                                                  allow_null=True)
    entryDate = serializers.DateTimeField(required=False, allow_null=True)
    deposit = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'), required=False,
                                       allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class VitalsSerializer(serializers.Serializer):
    bp = serializers.CharField(required=False, allow_blank=True, max_length=20)
    temp = serializers.CharField(required=False, allow_blank=True, max_length=10)
    pulse = serializers.CharField(required=False, allow_blank=True, max_length=10)
    resp = serializers.CharField(required=False, allow_blank=True, max_length=10)
    spo2 = serializers.CharField(required=False, allow_blank=True, max_length=10)
    gcs = serializers.CharField(required=False, allow_blank=True, max_length=10)
    sugar = serializers.CharField(required=False, allow_blank=True, max_length=20)
    insulin = serializers.CharField(required=False, allow_blank=True, max_length=20)


class NoteSerializer(serializers.Serializer):
    note = serializers.CharField()
    vitals = VitalsSerializer(required=False)
    doctorId = serializers.PrimaryKeyRelatedField(queryset=MedicalStaff.objects.all(), required=False,
                                                  allow_null=True)


class DischargeSerializer(serializers.Serializer):
    dischargeNotes = serializers.CharField(required=False, allow_blank=True, default='')
    dischargeStatus = serializers.ChoiceField(choices=[c for c, _ in Admission.DISCHARGE_CHOICES],
                                              default='Recovered')
