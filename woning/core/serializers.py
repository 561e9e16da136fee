from rest_framework import serializers

from .constants import MODES_PAIEMENT, MODE_ESPECES
from .models import (
    ArchiveMensuelle, ArchiveReversement, Bien, Locataire, Maison, Paiement,
    Proprietaire,
)


class ProprietaireSerializer(serializers.ModelSerializer):
    class Meta:
        model = Proprietaire
        fields = ['id', 'nom', 'prenom', 'telephone', 'email', 'adresse', 'date_creation']
        read_only_fields = ['date_creation']


class MaisonSerializer(serializers.ModelSerializer):
    class Meta:
        model = Maison
        fields = ['id', 'numero', 'statut', 'locataire', 'compteur_eau', 'compteur_electricite']
        read_only_fields = ['statut', 'locataire']


class BienSerializer(serializers.ModelSerializer):
    maisons = MaisonSerializer(many=True, read_only=True)
    nombre_maisons = serializers.IntegerField(write_only=True, required=False, min_value=1, max_value=20)

    class Meta:
        model = Bien
        fields = [
            'id', 'proprietaire', 'nom', 'type_bien', 'ville', 'quartier', 'adresse',
            'statut', 'maisons', 'nombre_maisons', 'date_creation',
        ]
        read_only_fields = ['statut', 'date_creation']

    def create(self, validated_data):
        nombre_maisons = validated_data.pop('nombre_maisons', None)
        bien = super().create(validated_data)
        if bien.type_bien == 'cour_commune' and nombre_maisons:
            Maison.objects.bulk_create([
                Maison(bien=bien, numero=numero) for numero in range(1, nombre_maisons + 1)
            ])
        return bien

    def update(self, instance, validated_data):
        validated_data.pop('nombre_maisons', None)
        return super().update(instance, validated_data)


class LocataireSerializer(serializers.ModelSerializer):
    class Meta:
        model = Locataire
        fields = [
            'id', 'nom', 'prenom', 'telephone', 'statut', 'montant_loyer', 'caution',
            'cour', 'numero_maison', 'date_creation',
        ]
        read_only_fields = ['statut', 'date_creation']

    def validate(self, attrs):
        cour = attrs.get('cour', getattr(self.instance, 'cour', None))
        numero = attrs.get('numero_maison', getattr(self.instance, 'numero_maison', None))
        errors = {}

        if cour is not None and cour.type_bien == 'cour_commune' and not numero:
            errors['numero_maison'] = "Veuillez sélectionner une maison pour cette cour commune"
        for champ in ('montant_loyer', 'caution'):
            if attrs.get(champ) is not None and attrs[champ] < 0:
                errors[champ] = "Le montant ne peut pas être négatif"

        if errors:
            raise serializers.ValidationError(errors)
        return attrs


class PaiementSerializer(serializers.ModelSerializer):
    class Meta:
        model = Paiement
        fields = [
            'id', 'locataire', 'mois', 'mois_index', 'annee', 'montant_du', 'montant_paye',
            'montant_restant', 'statut', 'date_paiement', 'mode_paiement', 'numero_cheque',
            'numero_mobile_money', 'remarques', 'paiement_multiple', 'groupe_id',
            'total_mois_payes', 'montant_total_paye', 'index_in_group', 'is_premier_du_groupe',
            'mois_du_groupe', 'date_creation',
        ]
        read_only_fields = [
            'locataire', 'mois', 'mois_index', 'annee', 'paiement_multiple', 'groupe_id',
            'total_mois_payes', 'montant_total_paye', 'index_in_group', 'is_premier_du_groupe',
            'mois_du_groupe', 'date_creation',
        ]


class SaisiePaiementSerializer(serializers.Serializer):
    """Saisie d'un paiement couvrant un ou plusieurs mois d'une même année."""
    locataire = serializers.PrimaryKeyRelatedField(queryset=Locataire.objects.all())
    annee = serializers.IntegerField(min_value=1900)
    mois_selectionnes = serializers.ListField(child=serializers.IntegerField(), allow_empty=True)
    montant_du = serializers.DecimalField(max_digits=12, decimal_places=2)
    montant_paye = serializers.DecimalField(max_digits=12, decimal_places=2)
    date_paiement = serializers.DateField(required=False)
    mode_paiement = serializers.ChoiceField(choices=MODES_PAIEMENT, default=MODE_ESPECES)
    numero_cheque = serializers.CharField(required=False, allow_blank=True, default='')
    numero_mobile_money = serializers.CharField(required=False, allow_blank=True, default='')
    remarques = serializers.CharField(required=False, allow_blank=True, default='')

    def to_donnees(self):
        donnees = dict(self.validated_data)
        donnees['locataire_id'] = donnees.pop('locataire').pk
        return donnees


class ValidationReversementSerializer(serializers.Serializer):
    proprietaire = serializers.PrimaryKeyRelatedField(queryset=Proprietaire.objects.all())
    mois = serializers.IntegerField(min_value=1, max_value=12)
    annee = serializers.IntegerField(min_value=1900)
    taux_commission = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=0, max_value=100, required=False,
    )


class ArchiveReversementSerializer(serializers.ModelSerializer):
    proprietaire_nom = serializers.CharField(source='proprietaire.__str__', read_only=True)

    class Meta:
        model = ArchiveReversement
        fields = [
            'id', 'proprietaire', 'proprietaire_nom', 'periode', 'montant_brut',
            'taux_commission', 'montant_commission', 'montant_net', 'paiements',
            'total_paiements', 'statut', 'date_validation',
        ]
        read_only_fields = fields


class ArchiveMensuelleSerializer(serializers.ModelSerializer):
    class Meta:
        model = ArchiveMensuelle
        fields = [
            'id', 'periode', 'libelle', 'paiements', 'total_paiements', 'montant_total',
            'date_archivage',
        ]
        read_only_fields = fields
