"""
Journal d'audit des opérations sensibles.

Paiements, reversements, fins de location et imports sont tracés sur le logger
`core.audit`, séparé des logs techniques. Chaque enregistrement porte l'action
et ses détails en attributs (`record.action`, `record.details`) pour les
handlers qui veulent les exploiter tels quels.
"""
import json
import logging

from django.core.serializers.json import DjangoJSONEncoder

audit_logger = logging.getLogger('core.audit')

PAIEMENT_CREATION = 'paiement.creation'
PAIEMENT_MODIFICATION = 'paiement.modification'
REVERSEMENT_VALIDATION = 'reversement.validation'
LOCATAIRE_LIBERATION = 'locataire.liberation'
DONNEES_IMPORT = 'donnees.import'


def journaliser(action, **details):
    texte = json.dumps(details, cls=DjangoJSONEncoder, ensure_ascii=False, sort_keys=True)
    audit_logger.info(f"[AUDIT] {action} {texte}", extra={'action': action, 'details': details})
