from django.contrib import admin
from django.utils.safestring import mark_safe
import logging

from . import audit
from .constants import STATUT_PAYE, STATUT_PARTIEL
from .exceptions import InvalidPeriodError, MaisonIndisponibleError
from .models import (
    Proprietaire, Bien, Maison, Locataire, Paiement, ArchiveReversement, ArchiveMensuelle
)
from .periodes import parse_cle_periode
from .services import ArchiveService, LocataireService
from .utils import formater_fcfa

logger = logging.getLogger(__name__)

# Personnalisation de l'interface (complétée par Jazzmin dans settings.py)
admin.site.site_header = "Woning.cloud"
admin.site.site_title = "Administration Woning.cloud"
admin.site.index_title = "Tableau de Bord"


def badge(texte, couleur):
    return mark_safe(
        f'<span style="background-color: {couleur}; color: white; padding: 3px 8px; '
        f'border-radius: 3px; font-weight: bold; font-size: 11px;">{texte}</span>'
    )


class BienInline(admin.TabularInline):
    model = Bien
    extra = 0
    fields = ('nom', 'type_bien', 'ville', 'quartier', 'statut')
    show_change_link = True


class MaisonInline(admin.TabularInline):
    model = Maison
    extra = 0
    fields = ('numero', 'statut', 'locataire', 'compteur_eau', 'compteur_electricite')
    readonly_fields = ('statut', 'locataire')
    ordering = ['numero']


class PaiementInline(admin.TabularInline):
    model = Paiement
    extra = 0
    fields = ('mois', 'annee', 'montant_du', 'montant_paye', 'statut', 'date_paiement', 'mode_paiement')
    readonly_fields = fields
    ordering = ['-annee', '-mois_index']
    can_delete = False  # Historique conservé

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Proprietaire)
class ProprietaireAdmin(admin.ModelAdmin):
    list_display = ('__str__', 'telephone', 'email', 'get_nombre_biens')
    search_fields = ('nom', 'prenom', 'telephone', 'email')
    inlines = [BienInline]

    def get_nombre_biens(self, obj):
        return obj.biens.count()
    get_nombre_biens.short_description = 'Biens'


@admin.register(Bien)
class BienAdmin(admin.ModelAdmin):
    list_display = ('nom', 'type_bien', 'proprietaire', 'ville', 'quartier', 'get_occupation')
    list_filter = ('type_bien', 'statut', 'ville')
    search_fields = ('nom', 'ville', 'quartier', 'proprietaire__nom')
    inlines = [MaisonInline]

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('proprietaire').prefetch_related('maisons')

    def get_occupation(self, obj):
        """Maisons occupées / total pour une cour commune, statut sinon."""
        if obj.type_bien == 'cour_commune':
            maisons = list(obj.maisons.all())
            occupees = sum(1 for m in maisons if m.statut == 'occupee')
            return f"{occupees}/{len(maisons)} maisons"
        return obj.get_statut_display()
    get_occupation.short_description = 'Occupation'


@admin.register(Locataire)
class LocataireAdmin(admin.ModelAdmin):
    list_display = ('__str__', 'telephone', 'cour', 'numero_maison', 'get_loyer', 'get_statut_badge')
    list_filter = ('statut', 'cour__type_bien', 'cour')
    search_fields = ('nom', 'prenom', 'telephone', 'cour__nom')
    inlines = [PaiementInline]
    actions = ['liberer_logement']

    def get_loyer(self, obj):
        return formater_fcfa(obj.montant_loyer)
    get_loyer.short_description = 'Loyer'
    get_loyer.admin_order_field = 'montant_loyer'

    def get_statut_badge(self, obj):
        if obj.est_actif:
            return badge('✓ Actif', '#28a745')
        return badge('✗ Inactif', '#6c757d')
    get_statut_badge.short_description = 'Statut'
    get_statut_badge.admin_order_field = 'statut'

    def save_model(self, request, obj, form, change):
        super().save_model(request, obj, form, change)
        if not change:
            try:
                LocataireService().installer(obj)
            except MaisonIndisponibleError as e:
                self.message_user(request, str(e), level='warning')

    @admin.action(description='Fin de location (libère le logement)')
    def liberer_logement(self, request, queryset):
        service = LocataireService()
        for locataire in queryset.select_related('cour'):
            service.liberer(locataire)
        self.message_user(request, f'{queryset.count()} locataire(s) libéré(s).')


@admin.register(Paiement)
class PaiementAdmin(admin.ModelAdmin):
    list_display = ('locataire', 'mois', 'annee', 'get_montant_du', 'get_montant_paye', 'get_statut_badge', 'mode_paiement', 'date_paiement', 'groupe_id')
    list_filter = (
        'statut',
        'mode_paiement',
        'annee',
        'paiement_multiple',
        ('date_paiement', admin.DateFieldListFilter),
    )
    search_fields = ('locataire__nom', 'locataire__prenom', 'mois', 'groupe_id', 'numero_cheque', 'numero_mobile_money')
    date_hierarchy = 'date_paiement'
    readonly_fields = (
        'mois_index', 'paiement_multiple', 'groupe_id', 'total_mois_payes', 'montant_total_paye',
        'index_in_group', 'is_premier_du_groupe', 'mois_du_groupe', 'date_creation',
    )
    champs_du_groupe = ('montant_du', 'montant_paye', 'montant_restant', 'date_paiement', 'mode_paiement')

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('locataire')

    def get_readonly_fields(self, request, obj=None):
        # Les mois d'un groupe partagent montants, date et mode
        if obj is not None and obj.groupe_id:
            return self.readonly_fields + self.champs_du_groupe
        return self.readonly_fields

    def has_delete_permission(self, request, obj=None):
        return False  # Historique conservé

    def save_model(self, request, obj, form, change):
        super().save_model(request, obj, form, change)
        if change:
            audit.journaliser(
                audit.PAIEMENT_MODIFICATION,
                paiement_id=obj.pk,
                locataire_id=obj.locataire_id,
                champs=sorted(form.changed_data),
                utilisateur=request.user.get_username(),
            )

    def get_montant_du(self, obj):
        return formater_fcfa(obj.montant_du)
    get_montant_du.short_description = 'Dû'

    def get_montant_paye(self, obj):
        return formater_fcfa(obj.montant_paye)
    get_montant_paye.short_description = 'Payé'

    def get_statut_badge(self, obj):
        if obj.statut == STATUT_PAYE:
            return badge('Payé', '#28a745')
        if obj.statut == STATUT_PARTIEL:
            return badge('Partiel', '#fd7e14')
        return badge('Impayé', '#dc3545')
    get_statut_badge.short_description = 'Statut'
    get_statut_badge.admin_order_field = 'statut'


@admin.register(ArchiveReversement)
class ArchiveReversementAdmin(admin.ModelAdmin):
    """Reversements validés : consultation seule."""
    list_display = ('proprietaire', 'periode', 'get_brut', 'taux_commission', 'get_net', 'total_paiements', 'date_validation')
    list_filter = ('periode', 'proprietaire')
    search_fields = ('proprietaire__nom', 'proprietaire__prenom', 'periode')

    def get_brut(self, obj):
        return formater_fcfa(obj.montant_brut)
    get_brut.short_description = 'Brut'

    def get_net(self, obj):
        return formater_fcfa(obj.montant_net)
    get_net.short_description = 'Net'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(ArchiveMensuelle)
class ArchiveMensuelleAdmin(admin.ModelAdmin):
    list_display = ('libelle', 'periode', 'total_paiements', 'get_montant_total', 'date_archivage')
    readonly_fields = ('periode', 'libelle', 'paiements', 'total_paiements', 'montant_total', 'date_archivage')
    actions = ['rearchiver']

    def get_montant_total(self, obj):
        return formater_fcfa(obj.montant_total)
    get_montant_total.short_description = 'Montant total'

    def has_add_permission(self, request):
        return False

    @admin.action(description='Refaire la photographie du mois')
    def rearchiver(self, request, queryset):
        service = ArchiveService()
        for archive in queryset:
            try:
                mois, annee = parse_cle_periode(archive.periode)
                service.archiver_mois(mois, annee)
            except InvalidPeriodError as e:
                logger.error(f"Archive {archive.periode} illisible : {e}")
                self.message_user(request, f"Période illisible : {archive.periode}", level='error')
        self.message_user(request, f'{queryset.count()} archive(s) mise(s) à jour.')
