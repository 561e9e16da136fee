"""
Conversions numériques sûres et formatage des montants.
"""
from collections import defaultdict
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from django.conf import settings

from .constants import DEVISE_DEFAUT, MOIS_GLISSANTS_DEFAUT, TAUX_COMMISSION_DEFAUT
from .exceptions import TauxCommissionInvalideError

CENTIME = Decimal('0.01')


def montant(value, default=Decimal('0')):
    """
    Convertit une valeur (nombre, chaîne, None) en Decimal.

    Les valeurs vides ou non numériques renvoient `default`.
    """
    if value is None or value == '' or isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        return value if value.is_finite() else default
    try:
        result = Decimal(str(value).strip().replace(',', '.'))
    except (InvalidOperation, ValueError):
        return default
    return result if result.is_finite() else default


def entier(value, default=0):
    """Convertit une valeur en int, `default` si la conversion échoue."""
    if value is None or value == '' or isinstance(value, bool):
        return default
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return default


def arrondir(value):
    """Arrondi au centime."""
    return montant(value).quantize(CENTIME, rounding=ROUND_HALF_UP)


def pourcentage(valeur, total, defaut=0):
    """Pourcentage entier arrondi de valeur/total, `defaut` si total nul."""
    total = montant(total)
    if total == 0:
        return defaut
    return int((montant(valeur) / total * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def formater_fcfa(value, devise=True):
    """Formate un montant : 1 234 567 FCFA"""
    val = arrondir(value).quantize(Decimal('1'), rounding=ROUND_HALF_UP)
    formatted = f"{int(val):,}".replace(",", " ")
    return f"{formatted} {get_devise()}" if devise else formatted


def grouper_par(elements, attribut):
    """Regroupe des objets par la valeur d'un attribut."""
    groupes = defaultdict(list)
    for element in elements:
        groupes[getattr(element, attribut, None)].append(element)
    return groupes


def get_taux_commission():
    return montant(getattr(settings, 'WONING_TAUX_COMMISSION', TAUX_COMMISSION_DEFAUT))


def verifier_taux(valeur):
    """Taux de commission en Decimal, entre 0 et 100 inclus."""
    taux = montant(valeur, None)
    if taux is None or not Decimal('0') <= taux <= Decimal('100'):
        raise TauxCommissionInvalideError(valeur)
    return taux


def get_mois_glissants():
    return entier(getattr(settings, 'WONING_MOIS_GLISSANTS', MOIS_GLISSANTS_DEFAUT), MOIS_GLISSANTS_DEFAUT)


def get_devise():
    return getattr(settings, 'WONING_DEVISE', DEVISE_DEFAUT)
