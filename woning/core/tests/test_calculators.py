import logging
from datetime import date, datetime
from decimal import Decimal

import pytest
from django.utils import timezone

from core.calculators import PaiementCalculator, est_locataire_facturable
from core.periodes import filtrer_par_periode
from core.tests.factories import nouveau_locataire, nouveau_paiement, saisie


class TestCreerPaiementsGroupes:

    def test_un_seul_mois_sans_groupe(self):
        paiements = PaiementCalculator.creer_paiements_groupes(saisie(mois=[4], du='30000', paye='30000'))

        assert len(paiements) == 1
        paiement = paiements[0]
        assert paiement.mois == 'Mai'
        assert paiement.mois_index == 5
        assert paiement.paiement_multiple is False
        assert paiement.groupe_id is None
        assert paiement.montant_total_paye == Decimal('30000')
        assert paiement.mois_du_groupe == ['Mai']
        assert paiement.statut == 'paye'

    def test_repartition_egale_entre_les_mois(self):
        paiements = PaiementCalculator.creer_paiements_groupes(
            saisie(mois=[0, 1, 2], du='90000', paye='60000')
        )

        assert [p.mois for p in paiements] == ['Janvier', 'Février', 'Mars']
        assert {p.montant_du for p in paiements} == {Decimal('30000.00')}
        assert {p.montant_paye for p in paiements} == {Decimal('20000.00')}
        assert {p.statut for p in paiements} == {'partiel'}
        assert {p.montant_restant for p in paiements} == {Decimal('10000.00')}

    def test_champs_de_groupe(self):
        paiements = PaiementCalculator.creer_paiements_groupes(saisie(mois=[5, 6], du='100000', paye='100000'))

        groupes = {p.groupe_id for p in paiements}
        assert len(groupes) == 1 and None not in groupes
        assert all(p.paiement_multiple for p in paiements)
        assert [p.index_in_group for p in paiements] == [0, 1]
        assert [p.is_premier_du_groupe for p in paiements] == [True, False]
        assert all(p.total_mois_payes == 2 for p in paiements)
        assert all(p.mois_du_groupe == ['Juin', 'Juillet'] for p in paiements)

    def test_nouveau_groupe_a_chaque_saisie(self):
        premier = PaiementCalculator.creer_paiements_groupes(saisie(mois=[0, 1]))
        second = PaiementCalculator.creer_paiements_groupes(saisie(mois=[0, 1]))
        assert premier[0].groupe_id != second[0].groupe_id

    @pytest.mark.parametrize('mois, total_du, total_paye', [
        ([0, 1], '60000', '60000'),
        ([0, 1, 2], '100000', '99999'),
        ([3, 4, 5, 6, 7, 8, 9], '350000', '123457'),
    ])
    def test_somme_des_parts_et_total_conserve(self, mois, total_du, total_paye):
        paiements = PaiementCalculator.creer_paiements_groupes(saisie(mois=mois, du=total_du, paye=total_paye))

        somme_du = sum(p.montant_du for p in paiements)
        assert abs(somme_du - Decimal(total_du)) <= Decimal('0.01') * len(mois)
        assert all(p.montant_total_paye == Decimal(total_paye) for p in paiements)

    def test_reste_non_redistribue(self):
        paiements = PaiementCalculator.creer_paiements_groupes(saisie(mois=[0, 1, 2], du='100000', paye='100000'))
        assert [p.montant_paye for p in paiements] == [Decimal('33333.33')] * 3

    def test_date_et_mode_communs(self):
        paiements = PaiementCalculator.creer_paiements_groupes(saisie(
            mois=[0, 1], date_paiement=date(2025, 2, 3), mode_paiement='mobile_money',
            numero_mobile_money='0700112233',
        ))
        assert {p.date_paiement for p in paiements} == {date(2025, 2, 3)}
        assert {p.mode_paiement for p in paiements} == {'mobile_money'}
        assert {p.numero_mobile_money for p in paiements} == {'0700112233'}


class TestMoisDejaPayes:

    def test_formes_heritees_et_groupes(self):
        paiements = [
            nouveau_paiement(1, 'Mars'),
            nouveau_paiement(1, '5'),
            nouveau_paiement(1, 7),
            nouveau_paiement(1, 'Octobre', paiement_multiple=True, groupe_id='g1',
                             mois_du_groupe=['Octobre', 'Novembre']),
        ]
        assert PaiementCalculator.mois_deja_payes(1, 2025, paiements) == {2, 4, 7, 9, 10}

    def test_ignore_autres_locataires_et_annees(self):
        paiements = [
            nouveau_paiement(2, 'Mars'),
            nouveau_paiement(1, 'Mars', annee=2024),
        ]
        assert PaiementCalculator.mois_deja_payes(1, 2025, paiements) == set()

    def test_mois_illisible_ignore(self):
        assert PaiementCalculator.mois_deja_payes(1, 2025, [nouveau_paiement(1, 'Brumaire')]) == set()

    def test_groupe_aux_noms_non_canoniques(self):
        paiements = [
            nouveau_paiement(1, 'Février', mois_index=2, paiement_multiple=True, groupe_id='g1',
                             mois_du_groupe=['janvier', 'fevrier']),
        ]
        assert PaiementCalculator.mois_deja_payes(1, 2025, paiements) == {0, 1}

    def test_mois_propre_conserve_si_groupe_illisible(self):
        paiements = [
            nouveau_paiement(1, 'Avril', paiement_multiple=True, groupe_id='g1', mois_du_groupe=['Germinal']),
        ]
        assert PaiementCalculator.mois_deja_payes(1, 2025, paiements) == {3}


class TestEstMoisDesactive:

    def test_mois_deja_paye(self):
        locataire = nouveau_locataire(1)
        paiements = [nouveau_paiement(1, 'Février')]
        assert PaiementCalculator.est_mois_desactive(1, 2025, locataire, paiements) == (True, 'Mois déjà payé')

    def test_avant_enregistrement(self):
        locataire = nouveau_locataire(1, cree_le=timezone.make_aware(datetime(2025, 4, 10)))
        assert PaiementCalculator.est_mois_desactive(2, 2025, locataire, []) == (True, 'Avant enregistrement')
        assert PaiementCalculator.est_mois_desactive(11, 2024, locataire, []) == (True, 'Avant enregistrement')
        assert PaiementCalculator.est_mois_desactive(3, 2025, locataire, []) == (False, '')

    def test_sans_locataire(self):
        assert PaiementCalculator.est_mois_desactive(0, 2025, None, []) == (False, '')


class TestValiderFormulaire:

    def champs_en_erreur(self, donnees, existants=()):
        return [e['field'] for e in PaiementCalculator.valider_formulaire(donnees, existants)]

    def test_saisie_valide(self):
        assert PaiementCalculator.valider_formulaire(saisie(mois=[0, 1])) == []

    def test_champs_obligatoires(self):
        erreurs = self.champs_en_erreur(saisie(locataire_id=None, mois=[], du='0', paye='-5'))
        assert set(erreurs) == {'locataire_id', 'mois_selectionnes', 'montant_du', 'montant_paye'}

    @pytest.mark.parametrize('mois', [[12], [-1], [0, 0]])
    def test_selection_invalide(self, mois):
        assert self.champs_en_erreur(saisie(mois=mois)) == ['mois_selectionnes']

    def test_numero_de_cheque_requis(self):
        assert self.champs_en_erreur(saisie(mode_paiement='cheque')) == ['numero_cheque']
        assert self.champs_en_erreur(saisie(mode_paiement='cheque', numero_cheque='CH-001')) == []

    def test_numero_mobile_money_requis(self):
        assert self.champs_en_erreur(saisie(mode_paiement='mobile_money', numero_mobile_money='  ')) == [
            'numero_mobile_money'
        ]

    def test_un_message_par_mois_deja_paye(self):
        existants = [
            nouveau_paiement(1, 'Janvier', paiement_multiple=True, groupe_id='g1',
                             mois_du_groupe=['Janvier', 'Février']),
        ]
        erreurs = PaiementCalculator.valider_formulaire(saisie(mois=[0, 1, 2]), existants)

        assert erreurs == [
            {'field': 'mois_selectionnes', 'message': 'Janvier 2025 est déjà payé'},
            {'field': 'mois_selectionnes', 'message': 'Février 2025 est déjà payé'},
        ]

    def test_conflit_avec_encodage_numerique(self):
        existants = [nouveau_paiement(1, 2)]
        erreurs = PaiementCalculator.valider_formulaire(saisie(mois=[2]), existants)
        assert erreurs == [{'field': 'mois_selectionnes', 'message': 'Mars 2025 est déjà payé'}]

    def test_conflit_avec_groupe_importe(self):
        existants = [
            nouveau_paiement(1, 'Février', mois_index=2, paiement_multiple=True, groupe_id='g1',
                             mois_du_groupe=['janvier', 'fevrier']),
        ]
        erreurs = PaiementCalculator.valider_formulaire(saisie(mois=[1]), existants)
        assert erreurs == [{'field': 'mois_selectionnes', 'message': 'Février 2025 est déjà payé'}]


class TestImpayes:

    def test_locataire_facturable(self):
        assert est_locataire_facturable(nouveau_locataire(1))
        assert not est_locataire_facturable(nouveau_locataire(1, statut='inactif'))
        assert not est_locataire_facturable(nouveau_locataire(1, loyer=None))
        assert not est_locataire_facturable(nouveau_locataire(1, loyer='0'))
        assert not est_locataire_facturable(nouveau_locataire(1, cour_id=None))

    @pytest.mark.parametrize('paye, statut, restant', [
        ('0', 'impaye', Decimal('50000')),
        ('49999', 'partiel', Decimal('1')),
        ('50000', 'paye', Decimal('0')),
        ('50001', 'paye', Decimal('0')),
    ])
    def test_seuils_de_statut(self, paye, statut, restant):
        locataire = nouveau_locataire(1, loyer='50000')
        paiements = [nouveau_paiement(1, 'Mars', paye=paye)] if paye != '0' else []

        info = PaiementCalculator.calculer_info_locataire(locataire, paiements)

        assert info['statut'] == statut
        assert info['montant_restant'] == restant
        assert info['montant_restant'] >= 0

    def test_locataires_impayes_filtre(self):
        locataires = [
            nouveau_locataire(1, loyer='50000'),
            nouveau_locataire(2, loyer='40000'),
            nouveau_locataire(3, loyer='40000', statut='inactif'),
            nouveau_locataire(4, loyer='40000', cour_id=None),
        ]
        paiements = [
            nouveau_paiement(1, 'Mars', paye='50000'),
            nouveau_paiement(2, 'Mars', paye='10000'),
        ]

        impayes = PaiementCalculator.locataires_impayes(paiements, locataires)

        assert [l['locataire'].pk for l in impayes] == [2]
        assert impayes[0]['statut'] == 'partiel'
        assert impayes[0]['montant_restant'] == Decimal('30000')

    def test_plusieurs_paiements_sur_la_periode_sont_additionnes(self, caplog):
        locataire = nouveau_locataire(1, loyer='50000')
        paiements = [
            nouveau_paiement(1, 'Mars', paye='20000'),
            nouveau_paiement(1, '3', paye='20000'),
        ]

        with caplog.at_level(logging.WARNING, logger='core.calculators'):
            info = PaiementCalculator.calculer_info_locataire(locataire, paiements)

        assert info['montant_paye'] == Decimal('40000')
        assert info['nombre_paiements'] == 2
        assert 'même période' in caplog.text

    def test_resume_periode(self):
        locataires = [nouveau_locataire(1, loyer='50000'), nouveau_locataire(2, loyer='30000')]
        paiements = filtrer_par_periode(
            [nouveau_paiement(1, 'Mars', paye='50000'), nouveau_paiement(2, 'Avril', paye='30000')],
            3, 2025,
        )

        assert PaiementCalculator.resume_periode(paiements, locataires) == {
            'total_attendu': Decimal('80000'),
            'total_encaisse': Decimal('50000'),
            'total_impaye': Decimal('30000'),
        }

    def test_resume_periode_trop_percu(self):
        resume = PaiementCalculator.resume_periode(
            [nouveau_paiement(1, 'Mars', paye='60000')], [nouveau_locataire(1, loyer='50000')]
        )
        assert resume['total_impaye'] == Decimal('0')
