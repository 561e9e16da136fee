"""
Constructeurs d'enregistrements non sauvegardés pour les tests des calculateurs.
"""
from datetime import datetime

from django.utils import timezone

from core.models import Bien, Locataire, Maison, Paiement, Proprietaire
from core.utils import montant


def nouveau_proprietaire(pk, nom='Kouassi', prenom='Jean'):
    return Proprietaire(pk=pk, nom=nom, prenom=prenom)


def nouveau_bien(pk, proprietaire_id, type_bien='cour_unique', nom=None):
    return Bien(pk=pk, proprietaire_id=proprietaire_id, type_bien=type_bien, nom=nom or f"Cour {pk}")


def nouvelle_maison(pk, bien_id, numero, statut='libre'):
    return Maison(pk=pk, bien_id=bien_id, numero=numero, statut=statut)


def nouveau_locataire(pk, cour_id=1, loyer='50000', statut='actif', cree_le=None):
    return Locataire(
        pk=pk,
        nom=f"Locataire{pk}",
        prenom='Awa',
        statut=statut,
        montant_loyer=montant(loyer, None),
        cour_id=cour_id,
        date_creation=cree_le or timezone.make_aware(datetime(2024, 1, 15)),
    )


def nouveau_paiement(locataire_id, mois, annee=2025, paye='50000', du='50000', pk=None, **champs):
    return Paiement(
        pk=pk,
        locataire_id=locataire_id,
        mois=mois,
        annee=annee,
        montant_du=montant(du),
        montant_paye=montant(paye),
        **champs,
    )


def saisie(locataire_id=1, mois=(0,), annee=2025, du='50000', paye='50000', **champs):
    """Données d'un formulaire de paiement."""
    donnees = {
        'locataire_id': locataire_id,
        'annee': annee,
        'mois_selectionnes': list(mois),
        'montant_du': montant(du),
        'montant_paye': montant(paye),
        'mode_paiement': 'especes',
        'numero_cheque': '',
        'numero_mobile_money': '',
        'remarques': '',
    }
    donnees.update(champs)
    return donnees
