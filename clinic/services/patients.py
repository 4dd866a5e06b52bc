import logging

from django.db import IntegrityError, transaction

from clinic.models import Patient
from clinic.services.identifiers import next_patient_code

logger = logging.getLogger(__name__)


def create_patient(current_user, *, full_name, **fields):
    """Register a patient under the next monthly patient code.

    A concurrent registration may take the same code first; the insert is
    retried with a fresh code in that case.
    """
    for attempt in range(3):
        try:
            with transaction.atomic():
                patient = Patient.objects.create(patient_code=next_patient_code(), full_name=full_name, **fields)
        except IntegrityError:
            logger.warning('Patient code collision on attempt %d, retrying', attempt + 1)
            continue
        logger.info('%s registered patient %s', getattr(current_user, 'username', '?'), patient.patient_code)
        return patient
    raise IntegrityError('Could not allocate a patient code')
