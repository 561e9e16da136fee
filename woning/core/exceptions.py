"""
Exceptions personnalisées pour le suivi des paiements et des reversements.
"""


class PaiementValidationError(Exception):
    """Exception levée quand un formulaire de paiement est refusé."""

    def __init__(self, erreurs):
        self.erreurs = list(erreurs)

        message = "Paiement refusé :\n"
        for erreur in self.erreurs:
            message += f"  - {erreur['field']} : {erreur['message']}\n"

        super().__init__(message)


class InvalidPeriodError(Exception):
    """Exception levée quand une période est invalide."""

    def __init__(self, message):
        super().__init__(message)


class ReversementDejaArchiveError(Exception):
    """Exception levée quand un reversement a déjà été validé pour la période."""

    def __init__(self, proprietaire, periode):
        self.proprietaire = proprietaire
        self.periode = periode
        super().__init__(
            f"Le reversement de {proprietaire} pour la période {periode} a déjà été effectué."
        )


class AucunMontantAReverserError(Exception):
    """Exception levée quand il n'y a rien à reverser au propriétaire."""

    def __init__(self, proprietaire, periode):
        self.proprietaire = proprietaire
        self.periode = periode
        super().__init__(f"Rien à reverser à {proprietaire} pour la période {periode}.")


class MaisonIndisponibleError(Exception):
    """Exception levée quand une maison de cour commune est inconnue ou déjà occupée."""

    def __init__(self, bien, numero):
        self.bien = bien
        self.numero = numero
        super().__init__(
            f"Impossible d'assigner la maison n°{numero} de {bien} : elle est inconnue ou déjà occupée."
        )


class TauxCommissionInvalideError(Exception):
    """Exception levée quand un taux de commission sort de 0-100 %."""

    def __init__(self, taux):
        self.taux = taux
        super().__init__(f"Taux de commission invalide : {taux} (attendu entre 0 et 100).")
