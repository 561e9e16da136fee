"""
Constantes métier : mois, modes de paiement, statuts.
"""

MOIS = [
    'Janvier', 'Février', 'Mars', 'Avril', 'Mai', 'Juin',
    'Juillet', 'Août', 'Septembre', 'Octobre', 'Novembre', 'Décembre',
]

MODE_ESPECES = 'especes'
MODE_VIREMENT = 'virement'
MODE_MOBILE_MONEY = 'mobile_money'
MODE_CHEQUE = 'cheque'

MODES_PAIEMENT = [
    (MODE_ESPECES, 'Espèces'),
    (MODE_VIREMENT, 'Virement bancaire'),
    (MODE_MOBILE_MONEY, 'Mobile Money'),
    (MODE_CHEQUE, 'Chèque'),
]

STATUT_PAYE = 'paye'
STATUT_PARTIEL = 'partiel'
STATUT_IMPAYE = 'impaye'

STATUTS_PAIEMENT = [
    (STATUT_PAYE, 'Payé'),
    (STATUT_PARTIEL, 'Partiel'),
    (STATUT_IMPAYE, 'Impayé'),
]

LOCATAIRE_ACTIF = 'actif'
LOCATAIRE_INACTIF = 'inactif'

STATUTS_LOCATAIRE = [
    (LOCATAIRE_ACTIF, 'Actif'),
    (LOCATAIRE_INACTIF, 'Inactif'),
]

COUR_UNIQUE = 'cour_unique'
COUR_COMMUNE = 'cour_commune'
MAGASIN = 'magasin'

TYPES_BIEN = [
    (COUR_UNIQUE, 'Cour unique (villa)'),
    (COUR_COMMUNE, 'Cour commune'),
    (MAGASIN, 'Magasin'),
]

MAISON_LIBRE = 'libre'
MAISON_OCCUPEE = 'occupee'

STATUTS_MAISON = [
    (MAISON_LIBRE, 'Libre'),
    (MAISON_OCCUPEE, 'Occupée'),
]

BIEN_LIBRE = 'libre'
BIEN_OCCUPE = 'occupe'

STATUTS_BIEN = [
    (BIEN_LIBRE, 'Libre'),
    (BIEN_OCCUPE, 'Occupé'),
]

REVERSEMENT_VALIDE = 'valide'

# Valeurs par défaut si absentes des settings
TAUX_COMMISSION_DEFAUT = 10
MOIS_GLISSANTS_DEFAUT = 6
DEVISE_DEFAUT = 'FCFA'
