"""
Calculateurs statistiques et reversements aux propriétaires.

Ce module contient les classes de calcul pour:
- ReversementCalculator: Montants à reverser par propriétaire, net de commission
- StatsCalculator: Occupation, recouvrement, séries mensuelles du tableau de bord
"""
import logging
from datetime import date
from decimal import Decimal

from .calculators import PaiementCalculator, est_locataire_facturable
from .constants import COUR_COMMUNE, LOCATAIRE_ACTIF, MAISON_OCCUPEE, MOIS
from .periodes import filtrer_par_periode, mois_du_paiement, mois_glissants
from .utils import arrondir, grouper_par, montant, pourcentage

logger = logging.getLogger(__name__)

ZERO = Decimal('0')


class ReversementCalculator:
    """Calcul des reversements dus aux propriétaires pour une période."""

    @staticmethod
    def montant_encaisse_locataire(paiements_locataire):
        """
        Montant réellement encaissé pour un locataire, sans double comptage.

        Un paiement groupé n'est compté qu'une fois par mois du groupe ; si
        tous les mois du groupe sont présents, le groupe vaut exactement son
        `montant_total_paye`.

        Returns:
            tuple: (montant, paiements retenus)
        """
        total = ZERO
        retenus = []
        vus = set()
        groupes = {}

        for paiement in paiements_locataire:
            if paiement.paiement_multiple and paiement.groupe_id:
                cle = (paiement.groupe_id, mois_du_paiement(paiement))
                if cle in vus:
                    logger.debug(f"Paiement {paiement.pk} du groupe {paiement.groupe_id} déjà compté")
                    continue
                vus.add(cle)
                groupes.setdefault(paiement.groupe_id, []).append(paiement)
            else:
                cle = ('paiement', paiement.pk if paiement.pk is not None else id(paiement))
                if cle in vus:
                    continue
                vus.add(cle)
                total += montant(paiement.montant_paye)
            retenus.append(paiement)

        for groupe_id, paiements_groupe in groupes.items():
            premier = paiements_groupe[0]
            if len(paiements_groupe) >= max(premier.total_mois_payes or 1, 1):
                total += montant(premier.montant_total_paye)
            else:
                total += sum((montant(p.montant_paye) for p in paiements_groupe), ZERO)

        return total, retenus

    @staticmethod
    def calculer_reversements(proprietaires, biens, locataires, paiements_periode,
                              taux_commission=10, archives_periode=()):
        """
        Calcule, pour chaque propriétaire, le montant à reverser sur la période.

        Args:
            proprietaires: Liste de Proprietaire
            biens: Liste de Bien
            locataires: Liste de Locataire
            paiements_periode: Paiements déjà filtrés sur la période
            taux_commission: Commission de gestion en %
            archives_periode: Reversements déjà archivés pour cette période

        Returns:
            list: Un dict par propriétaire ayant au moins un loyer attendu
        """
        taux = montant(taux_commission)
        biens_par_proprietaire = grouper_par(biens, 'proprietaire_id')
        locataires_par_bien = grouper_par(locataires, 'cour_id')
        paiements_par_locataire = grouper_par(paiements_periode, 'locataire_id')
        deja_reverses = {archive.proprietaire_id for archive in archives_periode}

        reversements = []
        for proprietaire in proprietaires:
            mes_biens = biens_par_proprietaire.get(proprietaire.pk, [])
            total_attendu = ZERO
            montant_a_reverser = ZERO
            montant_impaye = ZERO
            details = []
            paiements_retenus = []

            for bien in mes_biens:
                for locataire in locataires_par_bien.get(bien.pk, []):
                    if not est_locataire_facturable(locataire):
                        continue

                    loyer = montant(locataire.montant_loyer)
                    encaisse, retenus = ReversementCalculator.montant_encaisse_locataire(
                        paiements_par_locataire.get(locataire.pk, [])
                    )
                    reste = max(ZERO, loyer - encaisse)

                    total_attendu += loyer
                    montant_a_reverser += encaisse
                    montant_impaye += reste
                    paiements_retenus.extend(retenus)
                    details.append({
                        'bien': bien,
                        'locataire': locataire,
                        'montant_du': loyer,
                        'montant_paye': encaisse,
                        'montant_impaye': reste,
                    })

            if total_attendu <= 0:
                continue

            deja_reverse = proprietaire.pk in deja_reverses
            if deja_reverse:
                logger.info(f"Reversement déjà archivé pour {proprietaire}, montant ramené à 0")
                montant_a_reverser = ZERO

            commission = arrondir(montant_a_reverser * taux / 100)
            reversements.append({
                'proprietaire': proprietaire,
                'nombre_biens': len(mes_biens),
                'total_attendu': total_attendu,
                'montant_a_reverser': montant_a_reverser,
                'montant_impaye': montant_impaye,
                'taux_commission': taux,
                'montant_commission': commission,
                'montant_net': montant_a_reverser - commission,
                'deja_reverse': deja_reverse,
                'details': details,
                'paiements': paiements_retenus,
            })

        logger.info(f"Reversements calculés pour {len(reversements)} propriétaire(s)")
        return reversements


class StatsCalculator:
    """Statistiques du tableau de bord."""

    @staticmethod
    def loyers_actifs(locataires_actifs):
        return sum((montant(l.montant_loyer) for l in locataires_actifs), ZERO)

    @staticmethod
    def calculer_occupation(biens, maisons, locataires_actifs):
        """
        Unités louables et occupées.

        Une cour commune compte chacune de ses maisons, les autres biens une unité.
        """
        maisons_par_bien = grouper_par(maisons, 'bien_id')
        biens_occupes = {l.cour_id for l in locataires_actifs if l.cour_id is not None}

        total_unites = 0
        unites_occupees = 0
        for bien in biens:
            mes_maisons = maisons_par_bien.get(bien.pk, [])
            if bien.type_bien == COUR_COMMUNE and mes_maisons:
                total_unites += len(mes_maisons)
                unites_occupees += sum(1 for m in mes_maisons if m.statut == MAISON_OCCUPEE)
            else:
                total_unites += 1
                if bien.pk in biens_occupes:
                    unites_occupees += 1

        return {
            'total_unites': total_unites,
            'unites_occupees': unites_occupees,
            'taux_occupation': pourcentage(unites_occupees, total_unites, defaut=0),
        }

    @staticmethod
    def statistiques_financieres(locataires_actifs, paiements, reference=None):
        """Encaissements et impayés du mois de référence (mois courant par défaut)."""
        reference = reference or date.today()
        paiements_mois = filtrer_par_periode(paiements, reference.month, reference.year)

        revenus = PaiementCalculator.total_encaisse(paiements_mois)
        attendu = StatsCalculator.loyers_actifs(locataires_actifs)
        impayes = PaiementCalculator.locataires_impayes(paiements_mois, locataires_actifs)

        return {
            'mois_courant': reference.month,
            'annee_courante': reference.year,
            'revenus_mois_courant': revenus,
            'total_attendu_mois_courant': attendu,
            'montant_en_attente': max(ZERO, attendu - revenus),
            'taux_recouvrement': pourcentage(revenus, attendu, defaut=100),
            'alertes_impayes': len(impayes),
            'locataires_impayes': impayes,
        }

    @staticmethod
    def donnees_mensuelles(paiements, locataires_actifs, nb_mois=6, reference=None):
        """
        Encaissé et attendu des `nb_mois` derniers mois.

        L'attendu de chaque mois est calculé avec les locataires actifs
        aujourd'hui : l'occupation passée n'est pas reconstituée.

        Returns:
            dict: {index_mois (0-11): {'encaisse': Decimal, 'attendu': Decimal}}
        """
        attendu = StatsCalculator.loyers_actifs(locataires_actifs)
        donnees = {}

        for mois, annee in mois_glissants(nb_mois, reference):
            paiements_mois = filtrer_par_periode(paiements, mois, annee)
            donnees[mois - 1] = {
                'encaisse': PaiementCalculator.total_encaisse(paiements_mois),
                'attendu': attendu,
            }

        return donnees

    @staticmethod
    def statistiques_mensuelles(paiements, locataires_actifs, annee):
        """Série des douze mois d'une année : encaissé, attendu, écart."""
        attendu = StatsCalculator.loyers_actifs(locataires_actifs)
        serie = []
        for numero, nom in enumerate(MOIS, start=1):
            encaisse = PaiementCalculator.total_encaisse(filtrer_par_periode(paiements, numero, annee))
            serie.append({
                'mois': nom,
                'encaisse': encaisse,
                'attendu': attendu,
                'ecart': attendu - encaisse,
            })
        return serie

    @staticmethod
    def statistiques_globales(proprietaires, biens, maisons, locataires, paiements,
                              reference=None, nb_mois=6):
        """Synthèse complète pour le tableau de bord."""
        reference = reference or date.today()
        locataires_actifs = [l for l in locataires if l.statut == LOCATAIRE_ACTIF]

        occupation = StatsCalculator.calculer_occupation(biens, maisons, locataires_actifs)
        financier = StatsCalculator.statistiques_financieres(locataires_actifs, paiements, reference)

        return {
            'total_proprietaires': len(proprietaires),
            'total_biens': len(biens),
            'total_locataires': len(locataires),
            'locataires_actifs': len(locataires_actifs),
            **occupation,
            **financier,
            'libelle_mois_courant': MOIS[reference.month - 1],
            'donnees_mensuelles': StatsCalculator.donnees_mensuelles(
                paiements, locataires_actifs, nb_mois, reference
            ),
        }
