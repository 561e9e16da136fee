"""
Opérations d'écriture : enregistrement des paiements, validation des
reversements, archivage mensuel, occupation des maisons.

Chaque service reçoit son magasin d'enregistrements ; par défaut l'ORM Django.
"""
import json
import logging
from decimal import Decimal

from django.core.exceptions import ObjectDoesNotExist
from django.core.serializers.json import DjangoJSONEncoder
from django.db import IntegrityError, transaction

from . import audit
from .calculators import PaiementCalculator
from .constants import (
    BIEN_LIBRE, BIEN_OCCUPE, COUR_COMMUNE, LOCATAIRE_INACTIF, MAISON_LIBRE,
    MAISON_OCCUPEE,
)
from .exceptions import (
    AucunMontantAReverserError, MaisonIndisponibleError, PaiementValidationError,
    ReversementDejaArchiveError,
)
from .periodes import cle_periode, filtrer_par_periode, libelle_periode, verifier_periode
from .stats_calculators import ReversementCalculator
from .stores import DjangoRecordStore
from .utils import entier, get_taux_commission, montant, verifier_taux

logger = logging.getLogger(__name__)


def instantane_paiement(paiement):
    """Copie figée d'un paiement pour les archives."""
    return {
        'id': paiement.pk,
        'locataire_id': paiement.locataire_id,
        'mois': paiement.mois,
        'mois_index': paiement.mois_index,
        'annee': paiement.annee,
        'montant_du': paiement.montant_du,
        'montant_paye': paiement.montant_paye,
        'statut': paiement.statut,
        'date_paiement': paiement.date_paiement,
        'mode_paiement': paiement.mode_paiement,
        'groupe_id': paiement.groupe_id,
        'montant_total_paye': paiement.montant_total_paye,
    }


class PaiementService:

    def __init__(self, store=None):
        self.store = store or DjangoRecordStore()

    def enregistrer(self, donnees):
        """
        Valide puis enregistre une saisie de paiement (un ou plusieurs mois).

        Raises:
            PaiementValidationError: saisie refusée, rien n'est enregistré
        """
        existants = []
        if donnees.get('locataire_id') and entier(donnees.get('annee'), None):
            existants = self.store.paiements(locataire_id=donnees['locataire_id'], annee=entier(donnees['annee']))
        erreurs = PaiementCalculator.valider_formulaire(donnees, existants)
        if erreurs:
            raise PaiementValidationError(erreurs)

        with transaction.atomic():
            # Verrou sur le locataire : deux saisies simultanées ne peuvent pas payer le même mois
            try:
                self.store.locataire(donnees['locataire_id'], verrouiller=True)
            except ObjectDoesNotExist:
                raise PaiementValidationError([{'field': 'locataire_id', 'message': 'Locataire introuvable'}])
            existants = self.store.paiements(locataire_id=donnees['locataire_id'], annee=donnees['annee'])
            erreurs = PaiementCalculator.valider_formulaire(donnees, existants)
            if erreurs:
                raise PaiementValidationError(erreurs)

            paiements = PaiementCalculator.creer_paiements_groupes(donnees)
            self.store.ajouter_paiements(paiements)

        logger.info(
            f"{len(paiements)} paiement(s) enregistré(s) pour le locataire {donnees['locataire_id']} "
            f"({donnees['annee']}, groupe {paiements[0].groupe_id})"
        )
        audit.journaliser(
            audit.PAIEMENT_CREATION,
            locataire_id=donnees['locataire_id'],
            annee=donnees['annee'],
            mois=[p.mois for p in paiements],
            groupe_id=paiements[0].groupe_id,
            montant_paye=paiements[0].montant_total_paye,
            mode_paiement=paiements[0].mode_paiement,
            paiements=[p.pk for p in paiements],
        )
        return paiements


class ReversementService:

    def __init__(self, store=None):
        self.store = store or DjangoRecordStore()

    def calculer(self, mois, annee, taux_commission=None):
        """
        Reversements de la période, propriétaires déjà réglés ramenés à 0.

        Raises:
            TauxCommissionInvalideError: taux hors de 0-100 %
        """
        mois, annee = verifier_periode(mois, annee)
        taux = verifier_taux(get_taux_commission() if taux_commission is None else taux_commission)

        return ReversementCalculator.calculer_reversements(
            self.store.proprietaires(),
            self.store.biens(),
            self.store.locataires(),
            filtrer_par_periode(self.store.paiements(annee=annee), mois, annee),
            taux,
            self.store.archives_reversement(periode=cle_periode(mois, annee)),
        )

    def valider(self, proprietaire_id, mois, annee, taux_commission=None):
        """
        Archive le reversement d'un propriétaire pour la période.

        Raises:
            ReversementDejaArchiveError: reversement déjà effectué pour cette période
            AucunMontantAReverserError: aucun encaissement à reverser
        """
        mois, annee = verifier_periode(mois, annee)
        periode = cle_periode(mois, annee)

        try:
            with transaction.atomic():
                proprietaire = self.store.proprietaire(proprietaire_id, verrouiller=True)

                if self.store.archive_reversement_existe(proprietaire.pk, periode):
                    logger.warning(f"Double reversement refusé pour {proprietaire} ({periode})")
                    raise ReversementDejaArchiveError(proprietaire, periode)

                reversement = next(
                    (r for r in self.calculer(mois, annee, taux_commission) if r['proprietaire'].pk == proprietaire.pk),
                    None,
                )
                if reversement is None or reversement['montant_a_reverser'] <= 0:
                    raise AucunMontantAReverserError(proprietaire, periode)

                with transaction.atomic():
                    archive = self.store.creer_archive_reversement(
                        proprietaire=proprietaire,
                        periode=periode,
                        montant_brut=reversement['montant_a_reverser'],
                        taux_commission=reversement['taux_commission'],
                        montant_commission=reversement['montant_commission'],
                        montant_net=reversement['montant_net'],
                        paiements=[instantane_paiement(p) for p in reversement['paiements']],
                        total_paiements=len(reversement['paiements']),
                    )
        except IntegrityError:
            logger.warning(f"Archive concurrente détectée pour le propriétaire {proprietaire_id} ({periode})")
            raise ReversementDejaArchiveError(proprietaire_id, periode)

        logger.info(
            f"Reversement validé : {proprietaire} {periode} brut {archive.montant_brut}, net {archive.montant_net}"
        )
        audit.journaliser(
            audit.REVERSEMENT_VALIDATION,
            proprietaire_id=proprietaire.pk,
            periode=periode,
            montant_brut=archive.montant_brut,
            taux_commission=archive.taux_commission,
            montant_net=archive.montant_net,
            archive_id=archive.pk,
        )
        return archive


class ArchiveService:

    def __init__(self, store=None):
        self.store = store or DjangoRecordStore()

    def archiver_mois(self, mois, annee):
        """
        Photographie les paiements d'un mois. Un mois déjà archivé est remplacé.

        Returns:
            ArchiveMensuelle | None: None s'il n'y a aucun paiement
        """
        mois, annee = verifier_periode(mois, annee)
        paiements = filtrer_par_periode(self.store.paiements(annee=annee), mois, annee)
        if not paiements:
            logger.info(f"Aucun paiement à archiver pour {libelle_periode(mois, annee)}")
            return None

        archive, creee = self.store.enregistrer_archive_mensuelle(
            cle_periode(mois, annee),
            libelle=libelle_periode(mois, annee),
            paiements=[instantane_paiement(p) for p in paiements],
            total_paiements=len(paiements),
            montant_total=PaiementCalculator.total_encaisse(paiements),
        )
        logger.info(
            f"Archive {archive.libelle} {'créée' if creee else 'mise à jour'} : "
            f"{archive.total_paiements} paiement(s), {archive.montant_total}"
        )
        return archive

    def statistiques(self):
        mensuelles = self.store.archives_mensuelles()
        reversements = self.store.archives_reversement()
        return {
            'archives_mensuelles': len(mensuelles),
            'total_paiements_archives': sum(a.total_paiements for a in mensuelles),
            'montant_total_archive': sum((montant(a.montant_total) for a in mensuelles), Decimal('0')),
            'archives_reversements': len(reversements),
            'montant_total_reverse': sum((montant(a.montant_brut) for a in reversements), Decimal('0')),
            'derniere_archive': max((a.date_archivage for a in mensuelles), default=None),
        }

    def rechercher(self, terme, type_archive='tous'):
        """Recherche plein texte dans les archives (paiements et/ou reversements)."""
        terme = (terme or '').strip().lower()
        if not terme:
            return []

        resultats = []
        if type_archive in ('tous', 'paiements'):
            for archive in self.store.archives_mensuelles():
                for paiement in archive.paiements:
                    if terme in json.dumps(paiement, cls=DjangoJSONEncoder, ensure_ascii=False).lower():
                        resultats.append({'type': 'paiement', 'archive': archive.libelle, 'donnees': paiement})

        if type_archive in ('tous', 'reversements'):
            for archive in self.store.archives_reversement():
                texte = f"{archive.proprietaire} {archive.periode} " + json.dumps(
                    archive.paiements, cls=DjangoJSONEncoder, ensure_ascii=False
                )
                if terme in texte.lower():
                    resultats.append({'type': 'reversement', 'archive': archive.periode, 'donnees': archive})

        return resultats


class LocataireService:

    def __init__(self, store=None):
        self.store = store or DjangoRecordStore()

    @transaction.atomic
    def installer(self, locataire):
        """
        Occupe le logement d'un nouveau locataire.

        Raises:
            MaisonIndisponibleError: maison de cour commune inconnue ou déjà occupée
        """
        bien = locataire.cour
        if bien is None:
            return locataire

        if bien.type_bien == COUR_COMMUNE:
            if locataire.numero_maison is None:
                raise MaisonIndisponibleError(bien, None)
            maison = self.store.maison(bien.pk, locataire.numero_maison, verrouiller=True)
            if maison is None or (maison.statut == MAISON_OCCUPEE and maison.locataire_id != locataire.pk):
                raise MaisonIndisponibleError(bien, locataire.numero_maison)
            maison.statut = MAISON_OCCUPEE
            maison.locataire = locataire
            self.store.enregistrer(maison)
        else:
            bien.statut = BIEN_OCCUPE
            self.store.enregistrer(bien)

        logger.info(f"Locataire {locataire} installé dans {bien}")
        return locataire

    @transaction.atomic
    def liberer(self, locataire):
        """Fin de location : le locataire passe inactif et son logement redevient libre."""
        bien = locataire.cour
        if bien is not None:
            if bien.type_bien == COUR_COMMUNE and locataire.numero_maison is not None:
                maison = self.store.maison(bien.pk, locataire.numero_maison, verrouiller=True)
                if maison is not None and maison.locataire_id == locataire.pk:
                    maison.statut = MAISON_LIBRE
                    maison.locataire = None
                    self.store.enregistrer(maison)
            elif bien.type_bien != COUR_COMMUNE:
                bien.statut = BIEN_LIBRE
                self.store.enregistrer(bien)

        locataire.statut = LOCATAIRE_INACTIF
        self.store.enregistrer(locataire)
        logger.info(f"Locataire {locataire} libéré de {bien}")
        audit.journaliser(
            audit.LOCATAIRE_LIBERATION,
            locataire_id=locataire.pk,
            bien_id=bien.pk if bien is not None else None,
            numero_maison=locataire.numero_maison,
        )
        return locataire
