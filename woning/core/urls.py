from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import (
    ProprietaireViewSet,
    BienViewSet,
    LocataireViewSet,
    PaiementViewSet,
    ArchiveReversementViewSet,
    ArchiveMensuelleViewSet,
    impayes,
    resume,
    mois_payes,
    reversements,
    valider_reversement,
    dashboard,
    statistiques_mensuelles,
    statistiques_archives,
    recherche_archives,
)

router = DefaultRouter()
router.register(r'proprietaires', ProprietaireViewSet)
router.register(r'biens', BienViewSet)
router.register(r'locataires', LocataireViewSet)
router.register(r'paiements', PaiementViewSet, basename='paiement')
router.register(r'archives/reversements', ArchiveReversementViewSet)
router.register(r'archives/mensuelles', ArchiveMensuelleViewSet)

urlpatterns = [
    # Paiements
    path('impayes/', impayes, name='impayes'),
    path('resume/', resume, name='resume'),
    path('mois-payes/', mois_payes, name='mois_payes'),

    # Reversements
    path('reversements/', reversements, name='reversements'),
    path('reversements/valider/', valider_reversement, name='valider_reversement'),

    # Statistiques & archives
    path('dashboard/', dashboard, name='dashboard'),
    path('statistiques/mensuelles/', statistiques_mensuelles, name='statistiques_mensuelles'),
    path('archives/statistiques/', statistiques_archives, name='statistiques_archives'),
    path('archives/recherche/', recherche_archives, name='recherche_archives'),

    # API
    path('', include(router.urls)),
]
