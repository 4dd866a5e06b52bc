from decimal import Decimal

from rest_framework import serializers

from ..models import Patient, Transaction


class BillItemSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=255)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'))


class BillCreateSerializer(serializers.Serializer):
    patientId = serializers.PrimaryKeyRelatedField(queryset=Patient.objects.all())
    items = BillItemSerializer(many=True, allow_empty=False)


class PaymentSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))
    method = serializers.CharField(max_length=50, required=False, default='Cash')
    details = serializers.DictField(required=False, default=dict)
    date = serializers.DateTimeField(required=False, allow_null=True)


class RefundSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))
    reason = serializers.CharField(required=False, allow_blank=True, default='')
    method = serializers.CharField(max_length=50, required=False, default='Cash')
    date = serializers.DateTimeField(required=False, allow_null=True)


class TransactionSerializer(serializers.ModelSerializer):
    referenceId = serializers.IntegerField(source='bill_id', read_only=True)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))
    date = serializers.DateTimeField(required=False)

    class Meta:
        model = Transaction
        fields = ['id', 'type', 'category', 'amount', 'method', 'referenceId', 'details', 'date', 'description']
        read_only_fields = ['type']
