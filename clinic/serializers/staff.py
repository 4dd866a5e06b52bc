from decimal import Decimal

import bleach
from rest_framework import serializers

from ..models import Attendance, FinancialAdjustment, LeaveRequest, MedicalStaff, PayrollRecord

# Fields an existing staff record may change through the update endpoint.
STAFF_UPDATABLE = {
    'isAvailable', 'fullName', 'phone', 'email', 'address', 'consultationFee', 'consultationFeeFollowup',
    'consultationFeeEmergency', 'baseSalary', 'joinDate', 'bankDetails', 'department', 'specialization',
    'status', 'availableDays', 'availableTimeStart', 'availableTimeEnd',
}


class MedicalStaffSerializer(serializers.ModelSerializer):
    employeeId = serializers.CharField(source='employee_id', read_only=True)
    fullName = serializers.CharField(source='full_name', max_length=255)
    consultationFee = serializers.DecimalField(source='consultation_fee', max_digits=12, decimal_places=2,
                                               min_value=0, required=False)
    consultationFeeFollowup = serializers.DecimalField(source='consultation_fee_followup', max_digits=12,
                                                       decimal_places=2, min_value=0, required=False)
    consultationFeeEmergency = serializers.DecimalField(source='consultation_fee_emergency', max_digits=12,
                                                        decimal_places=2, min_value=0, required=False)
    isAvailable = serializers.BooleanField(source='is_available', required=False)
    availableDays = serializers.ListField(source='available_days', child=serializers.CharField(), required=False)
    availableTimeStart = serializers.CharField(source='available_time_start', required=False, allow_blank=True)
    availableTimeEnd = serializers.CharField(source='available_time_end', required=False, allow_blank=True)
    baseSalary = serializers.DecimalField(source='base_salary', max_digits=12, decimal_places=2, min_value=0,
                                          required=False)
    joinDate = serializers.DateField(source='join_date', required=False, allow_null=True)
    bankDetails = serializers.JSONField(source='bank_details', required=False)

    class Meta:
        model = MedicalStaff
        fields = [
            'id', 'employeeId', 'fullName', 'type', 'department', 'specialization', 'consultationFee',
            'consultationFeeFollowup', 'consultationFeeEmergency', 'status', 'isAvailable', 'availableDays',
            'availableTimeStart', 'availableTimeEnd', 'email', 'phone', 'address', 'baseSalary', 'joinDate',
            'bankDetails',
        ]

    def validate_fullName(self, v):
        v = bleach.clean((v or '').strip(), tags=set(), attributes={}, strip=True)
        if len(v) < 2:
            raise serializers.ValidationError('Name must be at least 2 characters')
        return v


class AttendanceSerializer(serializers.ModelSerializer):
    staffId = serializers.PrimaryKeyRelatedField(source='staff', queryset=MedicalStaff.objects.all())
    staffName = serializers.CharField(source='staff.full_name', read_only=True)
    checkIn = serializers.TimeField(source='check_in', required=False, allow_null=True)
    checkOut = serializers.TimeField(source='check_out', required=False, allow_null=True)

    class Meta:
        model = Attendance
        fields = ['id', 'staffId', 'staffName', 'date', 'status', 'checkIn', 'checkOut']
        # Upserted per staff/date by the view, so skip the unique-together check.
        validators = []


class LeaveRequestSerializer(serializers.ModelSerializer):
    staffId = serializers.PrimaryKeyRelatedField(source='staff', queryset=MedicalStaff.objects.all())
    staffName = serializers.CharField(source='staff.full_name', read_only=True)
    startDate = serializers.DateField(source='start_date')
    endDate = serializers.DateField(source='end_date')

    class Meta:
        model = LeaveRequest
        fields = ['id', 'staffId', 'staffName', 'type', 'startDate', 'endDate', 'reason', 'status']
        read_only_fields = ['status']

    def validate(self, attrs):
        if attrs['end_date'] < attrs['start_date']:
            raise serializers.ValidationError({'endDate': 'End date is before start date'})
        return attrs


class StatusSerializer(serializers.Serializer):
    status = serializers.CharField(max_length=20)
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255)


class PayrollSerializer(serializers.ModelSerializer):
    staffId = serializers.IntegerField(source='staff_id', read_only=True)
    staffName = serializers.CharField(source='staff.full_name', read_only=True)
    baseSalary = serializers.DecimalField(source='base_salary', max_digits=12, decimal_places=2, read_only=True)
    totalBonuses = serializers.DecimalField(source='total_bonuses', max_digits=12, decimal_places=2, read_only=True)
    totalFines = serializers.DecimalField(source='total_fines', max_digits=12, decimal_places=2, read_only=True)
    netSalary = serializers.DecimalField(source='net_salary', max_digits=12, decimal_places=2, read_only=True)
    generatedAt = serializers.DateTimeField(source='generated_at', read_only=True)

    class Meta:
        model = PayrollRecord
        fields = ['id', 'staffId', 'staffName', 'month', 'baseSalary', 'totalBonuses', 'totalFines',
                  'netSalary', 'status', 'generatedAt']


class PayrollGenerateSerializer(serializers.Serializer):
    month = serializers.RegexField(r'^\d{4}-(0[1-9]|1[0-2])$')


class AdjustmentSerializer(serializers.ModelSerializer):
    staffId = serializers.PrimaryKeyRelatedField(source='staff', queryset=MedicalStaff.objects.all())
    staffName = serializers.CharField(source='staff.full_name', read_only=True)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))

    class Meta:
        model = FinancialAdjustment
        fields = ['id', 'staffId', 'staffName', 'type', 'amount', 'reason', 'date', 'status']
        read_only_fields = ['status']
