"""
Accès aux enregistrements pour les services.

Les calculateurs travaillent sur des listes ; ce magasin les charge depuis la
base et reçoit les écritures.
"""
from .models import (
    ArchiveMensuelle, ArchiveReversement, Bien, Locataire, Maison,
    Paiement, Proprietaire,
)


class DjangoRecordStore:
    """Magasin d'enregistrements adossé à l'ORM Django."""

    def proprietaires(self):
        return list(Proprietaire.objects.all())

    def proprietaire(self, pk, verrouiller=False):
        queryset = Proprietaire.objects.all()
        if verrouiller:
            queryset = queryset.select_for_update()
        return queryset.get(pk=pk)

    def biens(self):
        return list(Bien.objects.all())

    def maisons(self):
        return list(Maison.objects.all())

    def locataires(self):
        return list(Locataire.objects.all())

    def locataire(self, pk, verrouiller=False):
        queryset = Locataire.objects.all()
        if verrouiller:
            queryset = queryset.select_for_update()
        return queryset.get(pk=pk)

    def paiements(self, locataire_id=None, annee=None):
        queryset = Paiement.objects.all()
        if locataire_id is not None:
            queryset = queryset.filter(locataire_id=locataire_id)
        if annee is not None:
            queryset = queryset.filter(annee=annee)
        return list(queryset)

    def ajouter_paiements(self, paiements):
        for paiement in paiements:
            paiement.save()
        return paiements

    def archives_reversement(self, periode=None):
        queryset = ArchiveReversement.objects.all()
        if periode is not None:
            queryset = queryset.filter(periode=periode)
        return list(queryset)

    def archive_reversement_existe(self, proprietaire_id, periode):
        return ArchiveReversement.objects.filter(proprietaire_id=proprietaire_id, periode=periode).exists()

    def creer_archive_reversement(self, **champs):
        return ArchiveReversement.objects.create(**champs)

    def archives_mensuelles(self):
        return list(ArchiveMensuelle.objects.all())

    def enregistrer_archive_mensuelle(self, periode, **champs):
        archive, creee = ArchiveMensuelle.objects.update_or_create(periode=periode, defaults=champs)
        return archive, creee

    def maison(self, bien_id, numero, verrouiller=False):
        queryset = Maison.objects.filter(bien_id=bien_id, numero=numero)
        if verrouiller:
            queryset = queryset.select_for_update()
        return queryset.first()

    def enregistrer(self, instance):
        instance.save()
        return instance
