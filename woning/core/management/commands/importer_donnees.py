"""
Import d'un export JSON du stockage navigateur.

Format attendu : {"proprietaires": [...], "biens": [...], "locataires": [...],
"paiements": [...]}, clés en camelCase, identifiants en texte. Les
identifiants d'origine ne sont pas conservés ; ils servent uniquement à relier
les enregistrements entre eux pendant l'import.
"""
import json
import logging
from pathlib import Path

from dateutil import parser as date_parser
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils import timezone

from core import audit
from core.constants import (
    BIEN_OCCUPE, COUR_COMMUNE, COUR_UNIQUE, LOCATAIRE_ACTIF, MAISON_LIBRE,
    MAISON_OCCUPEE, MODE_ESPECES, MODES_PAIEMENT, MOIS, STATUT_IMPAYE, STATUTS_PAIEMENT,
    TYPES_BIEN,
)
from core.models import Bien, Locataire, Maison, Paiement, Proprietaire
from core.periodes import normaliser_mois
from core.utils import entier, montant

logger = logging.getLogger(__name__)

TYPES_CONNUS = {valeur for valeur, _ in TYPES_BIEN}
MODES_CONNUS = {valeur for valeur, _ in MODES_PAIEMENT}
STATUTS_CONNUS = {valeur for valeur, _ in STATUTS_PAIEMENT}


def parse_datetime(value, default=None):
    if not value:
        return default
    try:
        parsed = date_parser.isoparse(str(value))
    except (TypeError, ValueError):
        return default
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def parse_date(value, default=None):
    parsed = parse_datetime(value)
    return timezone.localdate(parsed) if parsed else default


def texte(value):
    return '' if value is None else str(value).strip()


def mois_du_groupe(valeurs):
    """Noms canoniques des mois d'un groupe, valeurs illisibles écartées."""
    if not isinstance(valeurs, list):
        return []
    numeros = (normaliser_mois(valeur) for valeur in valeurs)
    return [MOIS[numero - 1] for numero in numeros if numero is not None]


class Command(BaseCommand):
    help = "Importe un export JSON (propriétaires, biens, locataires, paiements)"

    def add_arguments(self, parser):
        parser.add_argument('fichier', help="Chemin du fichier JSON exporté")
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help="Analyse et compte sans rien enregistrer",
        )

    def handle(self, *args, **options):
        chemin = Path(options['fichier'])
        if not chemin.exists():
            raise CommandError(f"Fichier introuvable : {chemin}")

        try:
            with chemin.open(encoding='utf-8-sig') as f:
                donnees = json.load(f)
        except json.JSONDecodeError as e:
            raise CommandError(f"JSON invalide : {e}")

        if not isinstance(donnees, dict):
            raise CommandError("L'export doit être un objet JSON avec les clés proprietaires, biens, locataires, paiements")

        self.ids_proprietaires = {}
        self.ids_biens = {}
        self.ids_locataires = {}
        self.ignores = 0

        with transaction.atomic():
            compteurs = {
                'proprietaires': self.importer_proprietaires(donnees.get('proprietaires') or []),
                'biens': self.importer_biens(donnees.get('biens') or []),
                'locataires': self.importer_locataires(donnees.get('locataires') or []),
                'paiements': self.importer_paiements(donnees.get('paiements') or []),
            }
            if options['dry_run']:
                transaction.set_rollback(True)

        resume = ', '.join(f"{nombre} {cle}" for cle, nombre in compteurs.items())
        prefixe = "[dry-run] " if options['dry_run'] else ""
        logger.info(f"{prefixe}Import {chemin.name} : {resume}, {self.ignores} ignoré(s)")
        if not options['dry_run']:
            audit.journaliser(audit.DONNEES_IMPORT, fichier=chemin.name, ignores=self.ignores, **compteurs)
        self.stdout.write(self.style.SUCCESS(f"{prefixe}Importé : {resume} ({self.ignores} ignoré(s))"))

    def ignorer(self, type_enregistrement, enregistrement, raison):
        self.ignores += 1
        logger.warning(f"{type_enregistrement} {enregistrement.get('id')!r} ignoré : {raison}")

    def importer_proprietaires(self, lignes):
        for ligne in lignes:
            if not texte(ligne.get('nom')):
                self.ignorer('Propriétaire', ligne, "nom manquant")
                continue
            proprietaire = Proprietaire.objects.create(
                nom=texte(ligne.get('nom')),
                prenom=texte(ligne.get('prenom')),
                telephone=texte(ligne.get('telephone')),
                email=texte(ligne.get('email')),
                adresse=texte(ligne.get('adresse')),
                date_creation=parse_datetime(ligne.get('dateCreation'), timezone.now()),
            )
            self.ids_proprietaires[str(ligne.get('id'))] = proprietaire
        return len(self.ids_proprietaires)

    def importer_biens(self, lignes):
        for ligne in lignes:
            proprietaire = self.ids_proprietaires.get(str(ligne.get('proprietaireId')))
            if proprietaire is None:
                self.ignorer('Bien', ligne, "propriétaire inconnu")
                continue

            type_bien = ligne.get('type') or ligne.get('typeBien')
            bien = Bien.objects.create(
                proprietaire=proprietaire,
                nom=texte(ligne.get('nom')),
                type_bien=type_bien if type_bien in TYPES_CONNUS else COUR_UNIQUE,
                ville=texte(ligne.get('ville')),
                quartier=texte(ligne.get('quartier')),
                adresse=texte(ligne.get('adresse')),
                date_creation=parse_datetime(ligne.get('dateCreation'), timezone.now()),
            )
            self.ids_biens[str(ligne.get('id'))] = bien

            if bien.type_bien == COUR_COMMUNE:
                Maison.objects.bulk_create([
                    Maison(
                        bien=bien,
                        numero=entier(maison.get('numeroMaison'), position),
                        compteur_eau=texte(maison.get('compteurEau')),
                        compteur_electricite=texte(maison.get('compteurElectricite')),
                    )
                    for position, maison in enumerate(ligne.get('maisons') or [], start=1)
                ])
        return len(self.ids_biens)

    def importer_locataires(self, lignes):
        for ligne in lignes:
            if not texte(ligne.get('nom')):
                self.ignorer('Locataire', ligne, "nom manquant")
                continue

            cour = self.ids_biens.get(str(ligne.get('courId')))
            numero = entier(ligne.get('numeroMaison'), None)
            locataire = Locataire.objects.create(
                nom=texte(ligne.get('nom')),
                prenom=texte(ligne.get('prenom')),
                telephone=texte(ligne.get('telephone')),
                statut=ligne.get('statut') or LOCATAIRE_ACTIF,
                montant_loyer=montant(ligne.get('montantLoyer'), None),
                caution=montant(ligne.get('caution'), None),
                cour=cour,
                numero_maison=numero,
                date_creation=parse_datetime(ligne.get('dateCreation'), timezone.now()),
            )
            self.ids_locataires[str(ligne.get('id'))] = locataire

            # Occupation reprise telle quelle, sans contrôle de disponibilité
            if cour is not None and locataire.est_actif:
                if cour.type_bien == COUR_COMMUNE and numero is not None:
                    Maison.objects.filter(bien=cour, numero=numero, statut=MAISON_LIBRE).update(
                        statut=MAISON_OCCUPEE, locataire=locataire,
                    )
                elif cour.type_bien != COUR_COMMUNE:
                    Bien.objects.filter(pk=cour.pk).update(statut=BIEN_OCCUPE)
        return len(self.ids_locataires)

    def importer_paiements(self, lignes):
        crees = 0
        for ligne in lignes:
            locataire = self.ids_locataires.get(str(ligne.get('locataireId')))
            if locataire is None:
                self.ignorer('Paiement', ligne, "locataire inconnu")
                continue

            # Conversion du mois avant tout passage en texte : un entier est un index 0-11
            brut = ligne.get('mois')
            mois_index = normaliser_mois(brut)
            annee = entier(ligne.get('annee'), None)
            if mois_index is None or annee is None:
                self.ignorer('Paiement', ligne, f"période illisible ({brut!r} {ligne.get('annee')!r})")
                continue

            mode = ligne.get('modePaiement')
            statut = ligne.get('statut')
            Paiement.objects.create(
                locataire=locataire,
                mois=MOIS[mois_index - 1],
                mois_index=mois_index,
                annee=annee,
                montant_du=montant(ligne.get('montantDu')),
                montant_paye=montant(ligne.get('montantPaye')),
                montant_restant=montant(ligne.get('montantRestant')),
                statut=statut if statut in STATUTS_CONNUS else STATUT_IMPAYE,
                date_paiement=parse_date(ligne.get('datePaiement'), timezone.localdate()),
                mode_paiement=mode if mode in MODES_CONNUS else MODE_ESPECES,
                numero_cheque=texte(ligne.get('numeroCheque')),
                numero_mobile_money=texte(ligne.get('numeroMobileMoney')),
                remarques=texte(ligne.get('remarques')),
                paiement_multiple=bool(ligne.get('paiementMultiple')),
                groupe_id=texte(ligne.get('groupeId')) or None,
                total_mois_payes=entier(ligne.get('totalMoisPayes'), 1),
                montant_total_paye=montant(ligne.get('montantTotalPaye')),
                index_in_group=entier(ligne.get('indexInGroup'), 0),
                is_premier_du_groupe=bool(ligne.get('isPremierDuGroupe', True)),
                mois_du_groupe=mois_du_groupe(ligne.get('moisDuGroupe')),
                date_creation=parse_datetime(ligne.get('dateCreation'), timezone.now()),
            )
            crees += 1
        return crees
