"""
Résolution des mois et filtrage des paiements par période.

Un paiement peut porter son mois sous trois formes héritées du stockage
navigateur : nom du mois ("Mars"), numéro 1-12 en texte ("3") ou index
JavaScript 0-11 (entier). Toutes passent par `normaliser_mois`, qui renvoie
le numéro canonique 1-12 ; le reste du code ne manipule que cette forme.
"""
import logging
import unicodedata
from datetime import date

from dateutil.relativedelta import relativedelta

from .constants import MOIS
from .exceptions import InvalidPeriodError
from .utils import entier

logger = logging.getLogger(__name__)


def _sans_accents(texte):
    decompose = unicodedata.normalize('NFD', texte)
    return ''.join(c for c in decompose if unicodedata.category(c) != 'Mn').lower()


def normaliser_mois(valeur, noms_mois=MOIS):
    """
    Convertit un mois encodé (nom, "1".."12", index 0-11) en numéro 1-12.

    Returns:
        int | None: None si la valeur n'est pas reconnue.
    """
    if valeur is None or isinstance(valeur, bool):
        return None

    if isinstance(valeur, int):
        # Index JavaScript (getMonth) des anciens enregistrements
        return valeur + 1 if 0 <= valeur <= 11 else None

    texte = str(valeur).strip()
    if not texte:
        return None

    if texte.isdigit():
        numero = int(texte)
        return numero if 1 <= numero <= 12 else None

    cible = _sans_accents(texte)
    for position, nom in enumerate(noms_mois, start=1):
        if _sans_accents(nom) == cible:
            return position
    return None


def mois_du_paiement(paiement, noms_mois=MOIS):
    """
    Numéro de mois (1-12) d'un paiement, `mois_index` prioritaire.

    Un mois illisible est signalé dans les logs et renvoie None.
    """
    mois_index = entier(getattr(paiement, 'mois_index', None), 0)
    if 1 <= mois_index <= 12:
        return mois_index

    brut = getattr(paiement, 'mois', None)
    numero = normaliser_mois(brut, noms_mois)
    if numero is None:
        logger.warning(
            f"Mois invalide détecté: {brut!r} pour paiement ID: {getattr(paiement, 'pk', None)}"
        )
    return numero


def index_mois(paiement, noms_mois=MOIS):
    """Index 0-11 du mois d'un paiement, None si illisible."""
    numero = mois_du_paiement(paiement, noms_mois)
    return numero - 1 if numero is not None else None


def verifier_periode(mois, annee):
    mois = entier(mois, 0)
    annee = entier(annee, 0)
    if not 1 <= mois <= 12:
        raise InvalidPeriodError(f"Mois invalide : {mois} (attendu entre 1 et 12).")
    if annee < 1900:
        raise InvalidPeriodError(f"Année invalide : {annee}.")
    return mois, annee


def filtrer_par_periode(paiements, mois, annee, noms_mois=MOIS):
    """
    Sélectionne les paiements d'un mois (1-12) et d'une année.

    Args:
        paiements: Liste de Paiement (ou objets équivalents)
        mois: Mois à filtrer (1-12)
        annee: Année à filtrer
        noms_mois: Noms des mois pour les paiements encodés par nom

    Returns:
        list: Paiements de la période
    """
    mois, annee = verifier_periode(mois, annee)
    return [
        paiement for paiement in paiements
        if mois_du_paiement(paiement, noms_mois) == mois
        and entier(getattr(paiement, 'annee', None), None) == annee
    ]


def cle_periode(mois, annee):
    mois, annee = verifier_periode(mois, annee)
    return f"{annee}-{mois:02d}"


def parse_cle_periode(cle):
    """'2025-03' -> (3, 2025)"""
    try:
        annee, mois = str(cle).split('-')
    except ValueError:
        raise InvalidPeriodError(f"Période invalide : {cle!r} (format attendu AAAA-MM).")
    return verifier_periode(mois, annee)


def libelle_periode(mois, annee):
    mois, annee = verifier_periode(mois, annee)
    return f"{MOIS[mois - 1]} {annee}"


def mois_glissants(nb_mois=6, reference=None):
    """
    Liste des (mois, annee) des `nb_mois` derniers mois, mois de référence inclus.

    Le plus ancien en premier.
    """
    nb_mois = entier(nb_mois, 0)
    if not 1 <= nb_mois <= 12:
        raise InvalidPeriodError(f"Fenêtre invalide : {nb_mois} mois (attendu entre 1 et 12).")

    reference = reference or date.today()
    debut = date(reference.year, reference.month, 1)

    periodes = []
    for decalage in range(nb_mois - 1, -1, -1):
        courant = debut - relativedelta(months=decalage)
        periodes.append((courant.month, courant.year))
    return periodes


def mois_precedent(reference=None):
    reference = reference or date.today()
    precedent = date(reference.year, reference.month, 1) - relativedelta(months=1)
    return precedent.month, precedent.year
