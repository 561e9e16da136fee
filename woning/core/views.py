"""
API REST : CRUD des enregistrements, impayés, reversements et statistiques.
"""
import logging
from datetime import date

from django.db import transaction
from django.shortcuts import get_object_or_404
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action, api_view
from rest_framework.response import Response

from .calculators import PaiementCalculator
from .constants import MOIS
from .exceptions import (
    AucunMontantAReverserError, InvalidPeriodError, MaisonIndisponibleError,
    PaiementValidationError, ReversementDejaArchiveError, TauxCommissionInvalideError,
)
from .models import (
    ArchiveMensuelle, ArchiveReversement, Bien, Locataire, Paiement, Proprietaire,
)
from .periodes import cle_periode, filtrer_par_periode, libelle_periode, verifier_periode
from .serializers import (
    ArchiveMensuelleSerializer, ArchiveReversementSerializer, BienSerializer,
    LocataireSerializer, PaiementSerializer, ProprietaireSerializer,
    SaisiePaiementSerializer, ValidationReversementSerializer,
)
from .services import ArchiveService, LocataireService, PaiementService, ReversementService
from .stats_calculators import StatsCalculator
from .stores import DjangoRecordStore
from .utils import entier, get_mois_glissants

logger = logging.getLogger(__name__)


# ============================================================================
# HELPERS
# ============================================================================

def periode_demandee(request):
    """(mois, annee) des paramètres de requête, mois courant par défaut."""
    today = date.today()
    return verifier_periode(
        request.query_params.get('mois', today.month),
        request.query_params.get('annee', today.year),
    )


def erreur_periode(e):
    logger.warning(f"Période refusée : {e}")
    return Response({'detail': str(e)}, status=status.HTTP_400_BAD_REQUEST)


def ligne_locataire(ligne):
    """Ajoute la fiche du locataire aux montants calculés."""
    donnees = {k: v for k, v in ligne.items() if k != 'locataire'}
    return {**LocataireSerializer(ligne['locataire']).data, **donnees, 'statut_locataire': ligne['locataire'].statut}


def ligne_reversement(reversement):
    return {
        'proprietaire': ProprietaireSerializer(reversement['proprietaire']).data,
        'nombre_biens': reversement['nombre_biens'],
        'nombre_locataires': len(reversement['details']),
        'total_attendu': reversement['total_attendu'],
        'montant_a_reverser': reversement['montant_a_reverser'],
        'montant_impaye': reversement['montant_impaye'],
        'taux_commission': reversement['taux_commission'],
        'montant_commission': reversement['montant_commission'],
        'montant_net': reversement['montant_net'],
        'deja_reverse': reversement['deja_reverse'],
        'details': [
            {
                'bien': detail['bien'].pk,
                'bien_nom': str(detail['bien']),
                'locataire': detail['locataire'].pk,
                'locataire_nom': str(detail['locataire']),
                'montant_du': detail['montant_du'],
                'montant_paye': detail['montant_paye'],
                'montant_impaye': detail['montant_impaye'],
            }
            for detail in reversement['details']
        ],
    }


# ============================================================================
# CRUD
# ============================================================================

class ProprietaireViewSet(viewsets.ModelViewSet):
    queryset = Proprietaire.objects.all()
    serializer_class = ProprietaireSerializer


class BienViewSet(viewsets.ModelViewSet):
    queryset = Bien.objects.select_related('proprietaire').prefetch_related('maisons')
    serializer_class = BienSerializer


class LocataireViewSet(viewsets.ModelViewSet):
    queryset = Locataire.objects.select_related('cour')
    serializer_class = LocataireSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            with transaction.atomic():
                locataire = serializer.save()
                LocataireService().installer(locataire)
        except MaisonIndisponibleError as e:
            return Response({'detail': str(e)}, status=status.HTTP_409_CONFLICT)
        return Response(self.get_serializer(locataire).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def liberer(self, request, pk=None):
        """Fin de location."""
        locataire = LocataireService().liberer(self.get_object())
        return Response(self.get_serializer(locataire).data)

    def destroy(self, request, *args, **kwargs):
        locataire = self.get_object()
        if locataire.paiements.exists():
            return Response(
                {'detail': "Ce locataire a un historique de paiements : passez-le inactif au lieu de le supprimer."},
                status=status.HTTP_409_CONFLICT,
            )
        return super().destroy(request, *args, **kwargs)


class PaiementViewSet(mixins.CreateModelMixin, viewsets.ReadOnlyModelViewSet):
    """
    Saisie et consultation des paiements.

    Pas de modification ni de suppression : les mois d'un même groupe doivent
    garder le même mode et la même date de paiement.
    """
    serializer_class = PaiementSerializer

    def get_queryset(self):
        queryset = Paiement.objects.select_related('locataire')
        locataire = self.request.query_params.get('locataire')
        if locataire:
            queryset = queryset.filter(locataire_id=locataire)
        return queryset

    def list(self, request, *args, **kwargs):
        paiements = list(self.get_queryset())
        if 'mois' in request.query_params or 'annee' in request.query_params:
            try:
                mois, annee = periode_demandee(request)
            except InvalidPeriodError as e:
                return erreur_periode(e)
            paiements = filtrer_par_periode(paiements, mois, annee)
        return Response(self.get_serializer(paiements, many=True).data)

    def create(self, request, *args, **kwargs):
        """Saisie groupée : un enregistrement par mois sélectionné."""
        saisie = SaisiePaiementSerializer(data=request.data)
        saisie.is_valid(raise_exception=True)
        try:
            paiements = PaiementService().enregistrer(saisie.to_donnees())
        except PaiementValidationError as e:
            logger.info(f"Saisie de paiement refusée : {e.erreurs}")
            return Response({'erreurs': e.erreurs}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(paiements, many=True).data, status=status.HTTP_201_CREATED)


class ArchiveReversementViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = ArchiveReversement.objects.select_related('proprietaire')
    serializer_class = ArchiveReversementSerializer


class ArchiveMensuelleViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = ArchiveMensuelle.objects.all()
    serializer_class = ArchiveMensuelleSerializer


# ============================================================================
# PAIEMENTS : IMPAYÉS, RÉSUMÉ, MOIS PAYÉS
# ============================================================================

@api_view(['GET'])
def impayes(request):
    """Locataires en impayé ou paiement partiel sur la période."""
    try:
        mois, annee = periode_demandee(request)
    except InvalidPeriodError as e:
        return erreur_periode(e)

    store = DjangoRecordStore()
    paiements = filtrer_par_periode(store.paiements(annee=annee), mois, annee)
    lignes = PaiementCalculator.locataires_impayes(paiements, store.locataires())
    lignes.sort(key=lambda l: l['montant_restant'], reverse=True)

    return Response({
        'periode': cle_periode(mois, annee),
        'libelle': libelle_periode(mois, annee),
        'impayes': [ligne_locataire(l) for l in lignes],
    })


@api_view(['GET'])
def resume(request):
    """Totaux attendu / encaissé / impayé de la période."""
    try:
        mois, annee = periode_demandee(request)
    except InvalidPeriodError as e:
        return erreur_periode(e)

    store = DjangoRecordStore()
    paiements = filtrer_par_periode(store.paiements(annee=annee), mois, annee)
    return Response({
        'periode': cle_periode(mois, annee),
        **PaiementCalculator.resume_periode(paiements, store.locataires()),
    })


@api_view(['GET'])
def mois_payes(request):
    """Mois (0-11) à désactiver dans la saisie d'un locataire."""
    locataire = get_object_or_404(Locataire, pk=entier(request.query_params.get('locataire'), 0))
    annee = entier(request.query_params.get('annee'), date.today().year)
    paiements = DjangoRecordStore().paiements(locataire_id=locataire.pk, annee=annee)

    mois = []
    for index, nom in enumerate(MOIS):
        desactive, raison = PaiementCalculator.est_mois_desactive(index, annee, locataire, paiements)
        mois.append({'index': index, 'nom': nom, 'desactive': desactive, 'raison': raison})

    return Response({
        'locataire': locataire.pk,
        'annee': annee,
        'mois_payes': sorted(PaiementCalculator.mois_deja_payes(locataire.pk, annee, paiements)),
        'mois': mois,
    })


# ============================================================================
# REVERSEMENTS
# ============================================================================

@api_view(['GET'])
def reversements(request):
    """Montants à reverser par propriétaire, du plus élevé au plus faible."""
    try:
        mois, annee = periode_demandee(request)
    except InvalidPeriodError as e:
        return erreur_periode(e)

    try:
        resultats = ReversementService().calculer(mois, annee, request.query_params.get('taux'))
    except TauxCommissionInvalideError as e:
        logger.warning(f"Taux refusé : {e}")
        return Response({'detail': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    resultats.sort(key=lambda r: r['montant_a_reverser'], reverse=True)

    return Response({
        'periode': cle_periode(mois, annee),
        'libelle': libelle_periode(mois, annee),
        'reversements': [ligne_reversement(r) for r in resultats],
    })


@api_view(['POST'])
def valider_reversement(request):
    """Valide et archive le reversement d'un propriétaire pour une période."""
    serializer = ValidationReversementSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    donnees = serializer.validated_data

    try:
        archive = ReversementService().valider(
            donnees['proprietaire'].pk,
            donnees['mois'],
            donnees['annee'],
            donnees.get('taux_commission'),
        )
    except ReversementDejaArchiveError as e:
        return Response({'detail': str(e), 'code': 'deja_reverse'}, status=status.HTTP_409_CONFLICT)
    except AucunMontantAReverserError as e:
        return Response({'detail': str(e), 'code': 'rien_a_reverser'}, status=status.HTTP_400_BAD_REQUEST)

    return Response(ArchiveReversementSerializer(archive).data, status=status.HTTP_201_CREATED)


# ============================================================================
# STATISTIQUES & ARCHIVES
# ============================================================================

@api_view(['GET'])
def dashboard(request):
    """Statistiques globales du tableau de bord."""
    store = DjangoRecordStore()
    try:
        nb_mois = entier(request.query_params.get('mois_glissants'), get_mois_glissants())
        stats = StatsCalculator.statistiques_globales(
            store.proprietaires(), store.biens(), store.maisons(), store.locataires(),
            store.paiements(), nb_mois=nb_mois,
        )
    except InvalidPeriodError as e:
        return erreur_periode(e)

    stats['locataires_impayes'] = [ligne_locataire(l) for l in stats['locataires_impayes']]
    return Response(stats)


@api_view(['GET'])
def statistiques_mensuelles(request):
    annee = entier(request.query_params.get('annee'), date.today().year)
    store = DjangoRecordStore()
    actifs = [l for l in store.locataires() if l.est_actif]
    try:
        serie = StatsCalculator.statistiques_mensuelles(store.paiements(annee=annee), actifs, annee)
    except InvalidPeriodError as e:
        return erreur_periode(e)
    return Response({'annee': annee, 'mois': serie})


@api_view(['GET'])
def statistiques_archives(request):
    return Response(ArchiveService().statistiques())


@api_view(['GET'])
def recherche_archives(request):
    type_archive = request.query_params.get('type', 'tous')
    if type_archive not in ('tous', 'paiements', 'reversements'):
        return Response({'detail': f"Type d'archive inconnu : {type_archive}"}, status=status.HTTP_400_BAD_REQUEST)

    resultats = ArchiveService().rechercher(request.query_params.get('q', ''), type_archive)
    for resultat in resultats:
        if resultat['type'] == 'reversement':
            resultat['donnees'] = ArchiveReversementSerializer(resultat['donnees']).data
    return Response({'resultats': resultats})
