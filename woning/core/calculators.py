"""
Calculateurs pour les paiements de loyers.

Toutes les méthodes travaillent sur des listes d'objets déjà chargées et ne
modifient rien : les écritures passent par `core.services`.
"""
import logging
import uuid
from datetime import datetime
from decimal import Decimal

from .constants import (
    LOCATAIRE_ACTIF, MODE_CHEQUE, MODE_MOBILE_MONEY, MOIS,
    STATUT_IMPAYE, STATUT_PARTIEL, STATUT_PAYE,
)
from .periodes import index_mois, normaliser_mois
from .utils import arrondir, entier, montant

logger = logging.getLogger(__name__)


def est_locataire_facturable(locataire):
    """Locataire actif, avec un loyer défini et un bien assigné."""
    return (
        locataire.statut == LOCATAIRE_ACTIF
        and montant(locataire.montant_loyer) > 0
        and getattr(locataire, 'cour_id', None) is not None
    )


class PaiementCalculator:
    """Classe utilitaire pour les calculs liés aux paiements."""

    @staticmethod
    def creer_paiements_groupes(donnees, noms_mois=MOIS):
        """
        Découpe une saisie multi-mois en un paiement par mois.

        Les montants saisis sont des totaux, répartis à parts égales entre les
        mois sélectionnés (arrondis au centime, sans redistribution du reste).
        Aucune validation n'est faite ici : voir `valider_formulaire`.

        Args:
            donnees (dict): locataire_id, annee, mois_selectionnes (index 0-11),
                montant_du, montant_paye, date_paiement, mode_paiement,
                numero_cheque, numero_mobile_money, remarques
            noms_mois (list): Noms des mois

        Returns:
            list: Paiements non enregistrés, dans l'ordre de la sélection
        """
        from .models import Paiement

        selection = list(donnees['mois_selectionnes'])
        nb_mois = len(selection)
        total_paye = montant(donnees.get('montant_paye'))
        total_du = montant(donnees.get('montant_du'))

        paye_par_mois = arrondir(total_paye / nb_mois)
        du_par_mois = arrondir(total_du / nb_mois)
        statut = STATUT_PAYE if paye_par_mois >= du_par_mois else STATUT_PARTIEL

        multiple = nb_mois > 1
        groupe_id = uuid.uuid4().hex if multiple else None
        mois_du_groupe = [noms_mois[i] for i in selection]

        paiements = []
        for position, mois_index in enumerate(selection):
            paiement = Paiement(
                locataire_id=donnees['locataire_id'],
                mois=noms_mois[mois_index],
                mois_index=mois_index + 1,
                annee=entier(donnees.get('annee')),
                montant_du=du_par_mois,
                montant_paye=paye_par_mois,
                montant_restant=du_par_mois - paye_par_mois,
                statut=statut,
                mode_paiement=donnees.get('mode_paiement') or '',
                numero_cheque=donnees.get('numero_cheque') or '',
                numero_mobile_money=donnees.get('numero_mobile_money') or '',
                remarques=donnees.get('remarques') or '',
                paiement_multiple=multiple,
                groupe_id=groupe_id,
                total_mois_payes=nb_mois,
                montant_total_paye=total_paye,
                index_in_group=position,
                is_premier_du_groupe=position == 0,
                mois_du_groupe=list(mois_du_groupe),
            )
            if donnees.get('date_paiement'):
                paiement.date_paiement = donnees['date_paiement']
            paiements.append(paiement)

        logger.debug(
            f"Paiement groupé {groupe_id}: {nb_mois} mois, {paye_par_mois} payé / {du_par_mois} dû par mois"
        )
        return paiements

    @staticmethod
    def mois_deja_payes(locataire_id, annee, paiements, noms_mois=MOIS):
        """
        Index (0-11) des mois déjà réglés par un locataire pour une année.

        Returns:
            set: Index des mois payés
        """
        annee = entier(annee, None)
        mois_payes = set()

        for paiement in paiements:
            if paiement.locataire_id != locataire_id or entier(paiement.annee, None) != annee:
                continue

            index = index_mois(paiement, noms_mois)
            if index is not None:
                mois_payes.add(index)

            if paiement.paiement_multiple and paiement.mois_du_groupe:
                for nom in paiement.mois_du_groupe:
                    numero = normaliser_mois(nom, noms_mois)
                    if numero is not None:
                        mois_payes.add(numero - 1)

        return mois_payes

    @staticmethod
    def est_mois_desactive(mois_index, annee, locataire, paiements):
        """
        Indique si un mois ne peut plus être sélectionné pour un locataire.

        Returns:
            tuple: (desactive, raison)
        """
        if locataire is None:
            return False, ''

        annee = entier(annee)
        if mois_index in PaiementCalculator.mois_deja_payes(locataire.pk, annee, paiements):
            return True, 'Mois déjà payé'

        creation = locataire.date_creation
        if creation:
            if isinstance(creation, datetime):
                creation = creation.date()
            if annee < creation.year:
                return True, 'Avant enregistrement'
            if annee == creation.year and mois_index < creation.month - 1:
                return True, 'Avant enregistrement'

        return False, ''

    @staticmethod
    def valider_formulaire(donnees, paiements_existants=(), noms_mois=MOIS):
        """
        Valide une saisie de paiement avant découpage.

        Returns:
            list: Erreurs [{'field': ..., 'message': ...}], vide si valide
        """
        erreurs = []
        selection = list(donnees.get('mois_selectionnes') or [])

        if not donnees.get('locataire_id'):
            erreurs.append({'field': 'locataire_id', 'message': 'Veuillez sélectionner un locataire'})

        if not selection:
            erreurs.append({'field': 'mois_selectionnes', 'message': 'Veuillez sélectionner au moins un mois'})
        elif any(not isinstance(i, int) or not 0 <= i <= 11 for i in selection):
            erreurs.append({'field': 'mois_selectionnes', 'message': 'Sélection de mois invalide'})
        elif len(set(selection)) != len(selection):
            erreurs.append({'field': 'mois_selectionnes', 'message': 'Un même mois est sélectionné plusieurs fois'})

        if montant(donnees.get('montant_paye')) <= 0:
            erreurs.append({'field': 'montant_paye', 'message': 'Le montant payé doit être supérieur à 0 FCFA'})

        if montant(donnees.get('montant_du')) <= 0:
            erreurs.append({'field': 'montant_du', 'message': 'Le montant dû doit être supérieur à 0 FCFA'})

        mode = donnees.get('mode_paiement')
        if mode == MODE_CHEQUE and not (donnees.get('numero_cheque') or '').strip():
            erreurs.append({'field': 'numero_cheque', 'message': 'Veuillez entrer le numéro de chèque'})

        if mode == MODE_MOBILE_MONEY and not (donnees.get('numero_mobile_money') or '').strip():
            erreurs.append({
                'field': 'numero_mobile_money',
                'message': 'Veuillez entrer le numéro de paiement Mobile Money',
            })

        annee = entier(donnees.get('annee'), 0)
        if annee < 1900:
            erreurs.append({'field': 'annee', 'message': "Veuillez indiquer l'année"})
        elif donnees.get('locataire_id') and selection and not any(e['field'] == 'mois_selectionnes' for e in erreurs):
            deja_payes = PaiementCalculator.mois_deja_payes(
                donnees['locataire_id'], annee, paiements_existants, noms_mois
            )
            for mois_index in selection:
                if mois_index in deja_payes:
                    erreurs.append({
                        'field': 'mois_selectionnes',
                        'message': f"{noms_mois[mois_index]} {annee} est déjà payé",
                    })

        return erreurs

    @staticmethod
    def calculer_info_locataire(locataire, paiements_periode):
        """
        Situation d'un locataire pour une période.

        Returns:
            dict: montant_du, montant_paye, montant_restant, statut, nombre_paiements
        """
        paiements_locataire = [p for p in paiements_periode if p.locataire_id == locataire.pk]
        if len(paiements_locataire) > 1:
            logger.warning(
                f"{len(paiements_locataire)} paiements pour le locataire {locataire.pk} sur la même période"
            )

        montant_paye = sum((montant(p.montant_paye) for p in paiements_locataire), Decimal('0'))
        montant_du = montant(locataire.montant_loyer)

        if montant_paye == 0:
            statut = STATUT_IMPAYE
        elif montant_paye < montant_du:
            statut = STATUT_PARTIEL
        else:
            statut = STATUT_PAYE

        return {
            'montant_du': montant_du,
            'montant_paye': montant_paye,
            'montant_restant': max(Decimal('0'), montant_du - montant_paye),
            'statut': statut,
            'nombre_paiements': len(paiements_locataire),
        }

    @staticmethod
    def locataires_impayes(paiements_periode, locataires):
        """
        Locataires facturables n'ayant pas tout réglé sur la période.

        Returns:
            list: dicts {'locataire': ..., montant_du, montant_paye, montant_restant, statut, ...}
        """
        impayes = []
        for locataire in locataires:
            if not est_locataire_facturable(locataire):
                continue
            info = PaiementCalculator.calculer_info_locataire(locataire, paiements_periode)
            if info['montant_paye'] < info['montant_du']:
                impayes.append({'locataire': locataire, **info})

        logger.info(f"{len(impayes)} locataire(s) en impayé sur la période")
        return impayes

    @staticmethod
    def total_attendu(locataires):
        """Somme des loyers des locataires facturables."""
        return sum(
            (montant(l.montant_loyer) for l in locataires if est_locataire_facturable(l)),
            Decimal('0'),
        )

    @staticmethod
    def total_encaisse(paiements_periode):
        """Somme des montants payés ; pour un paiement groupé, la part du mois."""
        return sum((montant(p.montant_paye) for p in paiements_periode), Decimal('0'))

    @staticmethod
    def resume_periode(paiements_periode, locataires):
        total_attendu = PaiementCalculator.total_attendu(locataires)
        total_encaisse = PaiementCalculator.total_encaisse(paiements_periode)
        return {
            'total_attendu': total_attendu,
            'total_encaisse': total_encaisse,
            'total_impaye': max(Decimal('0'), total_attendu - total_encaisse),
        }
