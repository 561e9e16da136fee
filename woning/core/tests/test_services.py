import logging
from datetime import date
from decimal import Decimal

import pytest

from core.exceptions import (
    AucunMontantAReverserError, InvalidPeriodError, MaisonIndisponibleError,
    PaiementValidationError, ReversementDejaArchiveError, TauxCommissionInvalideError,
)
from core.models import ArchiveMensuelle, ArchiveReversement, Locataire, Maison, Paiement
from core.services import ArchiveService, LocataireService, PaiementService, ReversementService
from core.stores import DjangoRecordStore
from core.tests.factories import saisie

pytestmark = pytest.mark.django_db


def traces_audit(caplog, action):
    return [r.details for r in caplog.records if r.name == 'core.audit' and r.action == action]


class MagasinSansControle(DjangoRecordStore):
    """Simule une validation concurrente : la vérification préalable ne voit rien."""

    def archive_reversement_existe(self, proprietaire_id, periode):
        return False

    def archives_reversement(self, periode=None):
        return []


class TestPaiementService:

    def test_enregistre_un_paiement_par_mois(self, locataire):
        paiements = PaiementService().enregistrer(
            saisie(locataire_id=locataire.pk, mois=[0, 1], du='60000', paye='60000')
        )

        assert Paiement.objects.count() == 2
        enregistres = Paiement.objects.filter(locataire=locataire).order_by('mois_index')
        assert [p.mois for p in enregistres] == ['Janvier', 'Février']
        assert {p.groupe_id for p in enregistres} == {paiements[0].groupe_id}
        assert all(p.pk for p in paiements)

    def test_refus_sans_ecriture(self, locataire):
        with pytest.raises(PaiementValidationError) as excinfo:
            PaiementService().enregistrer(saisie(locataire_id=locataire.pk, mois=[], paye='0'))

        champs = {e['field'] for e in excinfo.value.erreurs}
        assert champs == {'mois_selectionnes', 'montant_paye'}
        assert Paiement.objects.count() == 0

    def test_mois_deja_paye_refuse(self, locataire):
        service = PaiementService()
        service.enregistrer(saisie(locataire_id=locataire.pk, mois=[0, 1]))

        with pytest.raises(PaiementValidationError) as excinfo:
            service.enregistrer(saisie(locataire_id=locataire.pk, mois=[1, 2]))

        assert excinfo.value.erreurs == [
            {'field': 'mois_selectionnes', 'message': 'Février 2025 est déjà payé'},
        ]
        assert Paiement.objects.count() == 2

    def test_meme_mois_autre_annee_accepte(self, locataire):
        service = PaiementService()
        service.enregistrer(saisie(locataire_id=locataire.pk, mois=[0], annee=2024))
        service.enregistrer(saisie(locataire_id=locataire.pk, mois=[0], annee=2025))
        assert Paiement.objects.count() == 2

    def test_mois_index_renseigne_a_l_enregistrement(self, locataire):
        paiement = Paiement.objects.create(locataire=locataire, mois='Septembre', annee=2025)
        assert paiement.mois_index == 9

    def test_locataire_inconnu(self, db):
        with pytest.raises(PaiementValidationError) as excinfo:
            PaiementService().enregistrer(saisie(locataire_id=999999))

        assert excinfo.value.erreurs == [{'field': 'locataire_id', 'message': 'Locataire introuvable'}]
        assert Paiement.objects.count() == 0

    def test_saisie_tracee_dans_l_audit(self, locataire, caplog):
        caplog.set_level(logging.INFO, logger='core.audit')

        paiements = PaiementService().enregistrer(
            saisie(locataire_id=locataire.pk, mois=[0, 1], du='60000', paye='60000')
        )

        [trace] = traces_audit(caplog, 'paiement.creation')
        assert trace['locataire_id'] == locataire.pk
        assert trace['mois'] == ['Janvier', 'Février']
        assert trace['groupe_id'] == paiements[0].groupe_id
        assert trace['montant_paye'] == Decimal('60000')
        assert trace['paiements'] == [p.pk for p in paiements]

    def test_refus_non_trace(self, locataire, caplog):
        caplog.set_level(logging.INFO, logger='core.audit')
        with pytest.raises(PaiementValidationError):
            PaiementService().enregistrer(saisie(locataire_id=locataire.pk, mois=[]))
        assert traces_audit(caplog, 'paiement.creation') == []


class TestReversementService:

    def payer(self, locataire, mois, annee=2025, montant='30000'):
        PaiementService().enregistrer(saisie(locataire_id=locataire.pk, mois=mois, annee=annee, du=montant, paye=montant))

    def test_calculer(self, locataire, proprietaire):
        self.payer(locataire, [2])

        [reversement] = ReversementService().calculer(3, 2025)

        assert reversement['proprietaire'] == proprietaire
        assert reversement['montant_a_reverser'] == Decimal('30000')
        assert reversement['taux_commission'] == Decimal('10')
        assert reversement['montant_net'] == Decimal('27000')

    def test_taux_explicite(self, locataire):
        self.payer(locataire, [2])
        [reversement] = ReversementService().calculer(3, 2025, taux_commission='5')
        assert reversement['montant_commission'] == Decimal('1500')

    @pytest.mark.parametrize('taux', ['150', '-5', 'dix'])
    def test_taux_hors_bornes(self, locataire, taux):
        self.payer(locataire, [2])
        with pytest.raises(TauxCommissionInvalideError):
            ReversementService().calculer(3, 2025, taux_commission=taux)

    def test_taux_aux_bornes(self, locataire):
        self.payer(locataire, [2])
        service = ReversementService()
        assert service.calculer(3, 2025, taux_commission='0')[0]['montant_net'] == Decimal('30000')
        assert service.calculer(3, 2025, taux_commission='100')[0]['montant_net'] == Decimal('0')

    def test_valider_archive(self, locataire, proprietaire):
        self.payer(locataire, [2])

        archive = ReversementService().valider(proprietaire.pk, 3, 2025)

        assert archive.periode == '2025-03'
        assert archive.montant_brut == Decimal('30000')
        assert archive.montant_commission == Decimal('3000')
        assert archive.montant_net == Decimal('27000')
        assert archive.total_paiements == 1
        assert archive.paiements[0]['mois'] == 'Mars'

    def test_validation_tracee_dans_l_audit(self, locataire, proprietaire, caplog):
        caplog.set_level(logging.INFO, logger='core.audit')
        self.payer(locataire, [2])

        archive = ReversementService().valider(proprietaire.pk, 3, 2025)

        [trace] = traces_audit(caplog, 'reversement.validation')
        assert trace['proprietaire_id'] == proprietaire.pk
        assert trace['periode'] == '2025-03'
        assert trace['montant_net'] == Decimal('27000')
        assert trace['archive_id'] == archive.pk

    def test_double_validation(self, locataire, proprietaire):
        self.payer(locataire, [2])
        service = ReversementService()
        service.valider(proprietaire.pk, 3, 2025)

        [reversement] = service.calculer(3, 2025)
        assert reversement['montant_a_reverser'] == Decimal('0')
        assert reversement['deja_reverse'] is True

        with pytest.raises(ReversementDejaArchiveError):
            service.valider(proprietaire.pk, 3, 2025)
        assert ArchiveReversement.objects.count() == 1

    def test_contrainte_unique_en_dernier_recours(self, locataire, proprietaire):
        self.payer(locataire, [2])
        ReversementService().valider(proprietaire.pk, 3, 2025)

        with pytest.raises(ReversementDejaArchiveError):
            ReversementService(MagasinSansControle()).valider(proprietaire.pk, 3, 2025)
        assert ArchiveReversement.objects.count() == 1

    def test_autre_periode_independante(self, locataire, proprietaire):
        self.payer(locataire, [2, 3])
        service = ReversementService()
        service.valider(proprietaire.pk, 3, 2025)

        archive = service.valider(proprietaire.pk, 4, 2025)

        assert archive.periode == '2025-04'
        assert ArchiveReversement.objects.count() == 2

    def test_rien_a_reverser(self, locataire, proprietaire):
        with pytest.raises(AucunMontantAReverserError):
            ReversementService().valider(proprietaire.pk, 3, 2025)
        assert ArchiveReversement.objects.count() == 0

    def test_periode_invalide(self, proprietaire):
        with pytest.raises(InvalidPeriodError):
            ReversementService().valider(proprietaire.pk, 13, 2025)


class TestArchiveService:

    def test_archiver_mois(self, locataire):
        PaiementService().enregistrer(saisie(locataire_id=locataire.pk, mois=[4], du='30000', paye='30000'))

        archive = ArchiveService().archiver_mois(5, 2025)

        assert archive.periode == '2025-05'
        assert archive.libelle == 'Mai 2025'
        assert archive.total_paiements == 1
        assert archive.montant_total == Decimal('30000')

    def test_rearchiver_remplace(self, locataire):
        service = ArchiveService()
        PaiementService().enregistrer(saisie(locataire_id=locataire.pk, mois=[4], du='30000', paye='10000'))
        service.archiver_mois(5, 2025)
        Paiement.objects.create(locataire=locataire, mois='Mai', annee=2025, montant_paye=Decimal('20000'))

        archive = service.archiver_mois(5, 2025)

        assert ArchiveMensuelle.objects.count() == 1
        assert archive.total_paiements == 2
        assert archive.montant_total == Decimal('30000')

    def test_mois_sans_paiement(self, db):
        assert ArchiveService().archiver_mois(5, 2025) is None
        assert ArchiveMensuelle.objects.count() == 0

    def test_statistiques_et_recherche(self, locataire, proprietaire):
        PaiementService().enregistrer(saisie(
            locataire_id=locataire.pk, mois=[2], du='30000', paye='30000',
            mode_paiement='cheque', numero_cheque='CHQ-7781',
        ))
        archives = ArchiveService()
        archives.archiver_mois(3, 2025)
        ReversementService().valider(proprietaire.pk, 3, 2025)

        stats = archives.statistiques()
        assert stats['archives_mensuelles'] == 1
        assert stats['total_paiements_archives'] == 1
        assert stats['montant_total_archive'] == Decimal('30000')
        assert stats['archives_reversements'] == 1
        assert stats['montant_total_reverse'] == Decimal('30000')
        assert stats['derniere_archive'] is not None

        assert [r['type'] for r in archives.rechercher('mars')] == ['paiement', 'reversement']
        assert [r['archive'] for r in archives.rechercher('mars', 'paiements')] == ['Mars 2025']
        assert [r['type'] for r in archives.rechercher('Kouassi', 'reversements')] == ['reversement']
        assert archives.rechercher('Kouassi', 'paiements') == []
        assert archives.rechercher('   ') == []


class TestLocataireService:

    def test_installer_dans_une_maison_libre(self, cour_commune):
        locataire = Locataire.objects.create(nom='Koné', montant_loyer=Decimal('25000'), cour=cour_commune, numero_maison=2)

        LocataireService().installer(locataire)

        maison = Maison.objects.get(bien=cour_commune, numero=2)
        assert maison.statut == 'occupee'
        assert maison.locataire == locataire

    def test_maison_occupee_refusee(self, cour_commune):
        service = LocataireService()
        premier = Locataire.objects.create(nom='Koné', cour=cour_commune, numero_maison=1)
        service.installer(premier)
        second = Locataire.objects.create(nom='Bamba', cour=cour_commune, numero_maison=1)

        with pytest.raises(MaisonIndisponibleError):
            service.installer(second)

    def test_maison_inconnue_refusee(self, cour_commune):
        locataire = Locataire.objects.create(nom='Koné', cour=cour_commune, numero_maison=9)
        with pytest.raises(MaisonIndisponibleError):
            LocataireService().installer(locataire)

    def test_liberer(self, cour_commune):
        service = LocataireService()
        locataire = Locataire.objects.create(nom='Koné', cour=cour_commune, numero_maison=3)
        service.installer(locataire)

        service.liberer(locataire)

        locataire.refresh_from_db()
        maison = Maison.objects.get(bien=cour_commune, numero=3)
        assert locataire.statut == 'inactif'
        assert maison.statut == 'libre'
        assert maison.locataire is None

    def test_villa_occupee_puis_liberee(self, villa):
        service = LocataireService()
        locataire = Locataire.objects.create(nom='Koné', cour=villa)

        service.installer(locataire)
        villa.refresh_from_db()
        assert villa.statut == 'occupe'

        service.liberer(locataire)
        villa.refresh_from_db()
        assert villa.statut == 'libre'

    def test_liberation_tracee_dans_l_audit(self, villa, caplog):
        caplog.set_level(logging.INFO, logger='core.audit')
        locataire = Locataire.objects.create(nom='Koné', cour=villa)

        LocataireService().liberer(locataire)

        assert traces_audit(caplog, 'locataire.liberation') == [
            {'locataire_id': locataire.pk, 'bien_id': villa.pk, 'numero_maison': None},
        ]
