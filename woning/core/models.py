from django.core.exceptions import ValidationError
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.utils import timezone

from .constants import (
    BIEN_LIBRE, LOCATAIRE_ACTIF, MAISON_LIBRE, MODE_ESPECES, MODES_PAIEMENT,
    REVERSEMENT_VALIDE, STATUT_IMPAYE, STATUTS_BIEN, STATUTS_LOCATAIRE,
    STATUTS_MAISON, STATUTS_PAIEMENT, TYPES_BIEN, COUR_COMMUNE, COUR_UNIQUE,
)


class Proprietaire(models.Model):
    nom = models.CharField(max_length=100)
    prenom = models.CharField(max_length=100, blank=True)
    telephone = models.CharField(max_length=30, blank=True)
    email = models.EmailField(blank=True)
    adresse = models.TextField(blank=True)
    date_creation = models.DateTimeField(default=timezone.now)

    def __str__(self):
        return f"{self.prenom} {self.nom}".strip()

    class Meta:
        verbose_name = "Propriétaire"
        verbose_name_plural = "Propriétaires"
        ordering = ['nom', 'prenom']


class Bien(models.Model):
    proprietaire = models.ForeignKey(Proprietaire, on_delete=models.PROTECT, related_name='biens', verbose_name="Propriétaire")
    nom = models.CharField(max_length=200, verbose_name="Nom de la cour")
    type_bien = models.CharField(max_length=20, choices=TYPES_BIEN, default=COUR_UNIQUE, verbose_name="Type de bien")
    ville = models.CharField(max_length=100, blank=True)
    quartier = models.CharField(max_length=100, blank=True)
    adresse = models.TextField(blank=True)
    statut = models.CharField(max_length=20, choices=STATUTS_BIEN, default=BIEN_LIBRE, help_text="Pour les biens à unité unique")
    date_creation = models.DateTimeField(default=timezone.now)

    def __str__(self):
        return self.nom or f"{self.quartier} {self.ville}".strip()

    class Meta:
        verbose_name = "Bien"
        verbose_name_plural = "Biens"
        ordering = ['nom']


class Maison(models.Model):
    """Unité d'une cour commune."""
    bien = models.ForeignKey(Bien, on_delete=models.CASCADE, related_name='maisons')
    numero = models.PositiveIntegerField(verbose_name="Numéro de maison")
    statut = models.CharField(max_length=20, choices=STATUTS_MAISON, default=MAISON_LIBRE)
    locataire = models.ForeignKey('Locataire', on_delete=models.SET_NULL, null=True, blank=True, related_name='maisons')
    compteur_eau = models.CharField(max_length=50, blank=True)
    compteur_electricite = models.CharField(max_length=50, blank=True)

    def __str__(self):
        return f"{self.bien} - Maison n°{self.numero}"

    class Meta:
        verbose_name = "Maison"
        verbose_name_plural = "Maisons"
        ordering = ['bien', 'numero']
        constraints = [
            models.UniqueConstraint(fields=['bien', 'numero'], name='maison_unique_par_cour'),
        ]


class Locataire(models.Model):
    nom = models.CharField(max_length=100)
    prenom = models.CharField(max_length=100, blank=True)
    telephone = models.CharField(max_length=30, blank=True)
    statut = models.CharField(max_length=20, choices=STATUTS_LOCATAIRE, default=LOCATAIRE_ACTIF)
    montant_loyer = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True, verbose_name="Loyer mensuel")
    caution = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    cour = models.ForeignKey(Bien, on_delete=models.SET_NULL, null=True, blank=True, related_name='locataires', verbose_name="Bien occupé")
    numero_maison = models.PositiveIntegerField(null=True, blank=True, verbose_name="Numéro de maison")
    date_creation = models.DateTimeField(default=timezone.now)

    def __str__(self):
        return f"{self.prenom} {self.nom}".strip()

    @property
    def est_actif(self):
        return self.statut == LOCATAIRE_ACTIF

    def clean(self):
        if self.cour_id and self.cour.type_bien == COUR_COMMUNE and not self.numero_maison:
            raise ValidationError({'numero_maison': "Veuillez sélectionner une maison pour cette cour commune"})

    class Meta:
        verbose_name = "Locataire"
        verbose_name_plural = "Locataires"
        ordering = ['nom', 'prenom']


class Paiement(models.Model):
    """
    Paiement de loyer pour un mois.

    Un paiement couvrant plusieurs mois est stocké en autant d'enregistrements
    partageant le même `groupe_id`.
    """
    locataire = models.ForeignKey(Locataire, on_delete=models.PROTECT, related_name='paiements')

    # Mois tel que saisi (nom, "3" ou index hérité) et sa forme canonique 1-12
    mois = models.CharField(max_length=20)
    mois_index = models.PositiveSmallIntegerField(null=True, blank=True, verbose_name="Mois (1-12)")
    annee = models.PositiveIntegerField(verbose_name="Année")

    montant_du = models.DecimalField(max_digits=12, decimal_places=2, default=0, verbose_name="Montant dû")
    montant_paye = models.DecimalField(max_digits=12, decimal_places=2, default=0, verbose_name="Montant payé")
    montant_restant = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    statut = models.CharField(max_length=20, choices=STATUTS_PAIEMENT, default=STATUT_IMPAYE)

    date_paiement = models.DateField(default=timezone.localdate)
    mode_paiement = models.CharField(max_length=20, choices=MODES_PAIEMENT, default=MODE_ESPECES)
    numero_cheque = models.CharField(max_length=50, blank=True)
    numero_mobile_money = models.CharField(max_length=50, blank=True)
    remarques = models.TextField(blank=True)

    # Groupement multi-mois
    paiement_multiple = models.BooleanField(default=False)
    groupe_id = models.CharField(max_length=64, null=True, blank=True, db_index=True)
    total_mois_payes = models.PositiveSmallIntegerField(default=1)
    montant_total_paye = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    index_in_group = models.PositiveSmallIntegerField(default=0)
    is_premier_du_groupe = models.BooleanField(default=True)
    mois_du_groupe = models.JSONField(default=list, blank=True)

    date_creation = models.DateTimeField(default=timezone.now)

    def __str__(self):
        return f"{self.locataire} - {self.mois} {self.annee} ({self.montant_paye})"

    def clean(self):
        from .periodes import normaliser_mois
        if not self.mois_index and normaliser_mois(self.mois) is None:
            raise ValidationError({'mois': f"Mois inconnu : {self.mois}"})
        if self.montant_paye is not None and self.montant_paye < 0:
            raise ValidationError({'montant_paye': "Le montant ne peut pas être négatif"})

    def save(self, *args, **kwargs):
        if not self.mois_index:
            from .periodes import normaliser_mois
            self.mois_index = normaliser_mois(self.mois)
        super().save(*args, **kwargs)

    class Meta:
        verbose_name = "Paiement"
        verbose_name_plural = "Paiements"
        ordering = ['-annee', '-mois_index', 'locataire']
        indexes = [
            models.Index(fields=['annee', 'mois_index'], name='paiement_periode_idx'),
        ]


class ArchiveReversement(models.Model):
    """Reversement validé pour un propriétaire et une période. Jamais modifié."""
    proprietaire = models.ForeignKey(Proprietaire, on_delete=models.PROTECT, related_name='reversements')
    periode = models.CharField(max_length=7, help_text="AAAA-MM")
    montant_brut = models.DecimalField(max_digits=12, decimal_places=2)
    taux_commission = models.DecimalField(max_digits=5, decimal_places=2)
    montant_commission = models.DecimalField(max_digits=12, decimal_places=2)
    montant_net = models.DecimalField(max_digits=12, decimal_places=2)
    paiements = models.JSONField(default=list, blank=True, encoder=DjangoJSONEncoder)
    total_paiements = models.PositiveIntegerField(default=0)
    statut = models.CharField(max_length=20, default=REVERSEMENT_VALIDE)
    date_validation = models.DateTimeField(default=timezone.now)

    def __str__(self):
        return f"Reversement {self.proprietaire} - {self.periode}"

    class Meta:
        verbose_name = "Reversement archivé"
        verbose_name_plural = "Reversements archivés"
        ordering = ['-date_validation']
        constraints = [
            models.UniqueConstraint(fields=['proprietaire', 'periode'], name='reversement_unique_par_periode'),
        ]


class ArchiveMensuelle(models.Model):
    """Photographie des paiements d'un mois clôturé."""
    periode = models.CharField(max_length=7, unique=True, help_text="AAAA-MM")
    libelle = models.CharField(max_length=50)
    paiements = models.JSONField(default=list, blank=True, encoder=DjangoJSONEncoder)
    total_paiements = models.PositiveIntegerField(default=0)
    montant_total = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    date_archivage = models.DateTimeField(default=timezone.now)

    def __str__(self):
        return f"Archive {self.libelle}"

    class Meta:
        verbose_name = "Archive mensuelle"
        verbose_name_plural = "Archives mensuelles"
        ordering = ['-periode']
