import logging

from django.core.management.base import BaseCommand, CommandError

from core.exceptions import InvalidPeriodError
from core.periodes import libelle_periode, mois_precedent
from core.services import ArchiveService

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Archive les paiements d'un mois (par défaut le mois précédent)"

    def add_arguments(self, parser):
        parser.add_argument('--mois', type=int, help="Mois à archiver (1-12)")
        parser.add_argument('--annee', type=int, help="Année du mois à archiver")

    def handle(self, *args, **options):
        mois, annee = mois_precedent()
        if options['mois'] is not None:
            mois = options['mois']
        if options['annee'] is not None:
            annee = options['annee']

        try:
            archive = ArchiveService().archiver_mois(mois, annee)
        except InvalidPeriodError as e:
            raise CommandError(str(e))

        if archive is None:
            self.stdout.write(self.style.WARNING(f"Aucun paiement pour {libelle_periode(mois, annee)}"))
            return

        self.stdout.write(self.style.SUCCESS(
            f"Archive {archive.libelle} : {archive.total_paiements} paiement(s), {archive.montant_total}"
        ))
