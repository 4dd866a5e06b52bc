from decimal import Decimal

from rest_framework import serializers

from ..models import Medicine, Patient


class MedicineSerializer(serializers.ModelSerializer):
    genericName = serializers.CharField(source='generic_name', required=False, allow_blank=True)
    stockLevel = serializers.IntegerField(source='stock_level', min_value=0, required=False)
    unitPrice = serializers.DecimalField(source='unit_price', max_digits=12, decimal_places=2,
                                         min_value=Decimal('0'))
    expiryDate = serializers.DateField(source='expiry_date', required=False, allow_null=True)
    batchNumber = serializers.CharField(source='batch_number', required=False, allow_blank=True)
    reorderLevel = serializers.IntegerField(source='reorder_level', min_value=0, required=False)

    class Meta:
        model = Medicine
        fields = ['id', 'name', 'genericName', 'category', 'stockLevel', 'unitPrice', 'expiryDate',
                  'batchNumber', 'reorderLevel']


class DispenseLineSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1)


class DispenseSerializer(serializers.Serializer):
    patientId = serializers.PrimaryKeyRelatedField(queryset=Patient.objects.all())
    items = DispenseLineSerializer(many=True, allow_empty=False)
    paymentMethod = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=50)
