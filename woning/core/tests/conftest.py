from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from core.models import Bien, Locataire, Maison, Proprietaire


@pytest.fixture
def api_client(django_user_model):
    user = django_user_model.objects.create_user(username='gestionnaire', password='secret')
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def proprietaire(db):
    return Proprietaire.objects.create(nom='Kouassi', prenom='Jean', telephone='0700000000')


@pytest.fixture
def villa(proprietaire):
    return Bien.objects.create(proprietaire=proprietaire, nom='Villa Cocody', type_bien='cour_unique', ville='Abidjan')


@pytest.fixture
def cour_commune(proprietaire):
    bien = Bien.objects.create(proprietaire=proprietaire, nom='Cour Yopougon', type_bien='cour_commune', ville='Abidjan')
    Maison.objects.bulk_create([Maison(bien=bien, numero=numero) for numero in (1, 2, 3)])
    return bien


@pytest.fixture
def locataire(villa):
    return Locataire.objects.create(nom='Traoré', prenom='Awa', montant_loyer=Decimal('30000'), cour=villa)
