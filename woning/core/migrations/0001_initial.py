import django.core.serializers.json
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Proprietaire',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('nom', models.CharField(max_length=100)),
                ('prenom', models.CharField(blank=True, max_length=100)),
                ('telephone', models.CharField(blank=True, max_length=30)),
                ('email', models.EmailField(blank=True, max_length=254)),
                ('adresse', models.TextField(blank=True)),
                ('date_creation', models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                'verbose_name': 'Propriétaire',
                'verbose_name_plural': 'Propriétaires',
                'ordering': ['nom', 'prenom'],
            },
        ),
        migrations.CreateModel(
            name='Bien',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('nom', models.CharField(max_length=200, verbose_name='Nom de la cour')),
                ('type_bien', models.CharField(choices=[('cour_unique', 'Cour unique (villa)'), ('cour_commune', 'Cour commune'), ('magasin', 'Magasin')], default='cour_unique', max_length=20, verbose_name='Type de bien')),
                ('ville', models.CharField(blank=True, max_length=100)),
                ('quartier', models.CharField(blank=True, max_length=100)),
                ('adresse', models.TextField(blank=True)),
                ('statut', models.CharField(choices=[('libre', 'Libre'), ('occupe', 'Occupé')], default='libre', help_text='Pour les biens à unité unique', max_length=20)),
                ('date_creation', models.DateTimeField(default=django.utils.timezone.now)),
                ('proprietaire', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='biens', to='core.proprietaire', verbose_name='Propriétaire')),
            ],
            options={
                'verbose_name': 'Bien',
                'verbose_name_plural': 'Biens',
                'ordering': ['nom'],
            },
        ),
        migrations.CreateModel(
            name='Locataire',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('nom', models.CharField(max_length=100)),
                ('prenom', models.CharField(blank=True, max_length=100)),
                ('telephone', models.CharField(blank=True, max_length=30)),
                ('statut', models.CharField(choices=[('actif', 'Actif'), ('inactif', 'Inactif')], default='actif', max_length=20)),
                ('montant_loyer', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True, verbose_name='Loyer mensuel')),
                ('caution', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('numero_maison', models.PositiveIntegerField(blank=True, null=True, verbose_name='Numéro de maison')),
                ('date_creation', models.DateTimeField(default=django.utils.timezone.now)),
                ('cour', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='locataires', to='core.bien', verbose_name='Bien occupé')),
            ],
            options={
                'verbose_name': 'Locataire',
                'verbose_name_plural': 'Locataires',
                'ordering': ['nom', 'prenom'],
            },
        ),
        migrations.CreateModel(
            name='Maison',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('numero', models.PositiveIntegerField(verbose_name='Numéro de maison')),
                ('statut', models.CharField(choices=[('libre', 'Libre'), ('occupee', 'Occupée')], default='libre', max_length=20)),
                ('compteur_eau', models.CharField(blank=True, max_length=50)),
                ('compteur_electricite', models.CharField(blank=True, max_length=50)),
                ('bien', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='maisons', to='core.bien')),
                ('locataire', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='maisons', to='core.locataire')),
            ],
            options={
                'verbose_name': 'Maison',
                'verbose_name_plural': 'Maisons',
                'ordering': ['bien', 'numero'],
            },
        ),
        migrations.AddConstraint(
            model_name='maison',
            constraint=models.UniqueConstraint(fields=('bien', 'numero'), name='maison_unique_par_cour'),
        ),
        migrations.CreateModel(
            name='Paiement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('mois', models.CharField(max_length=20)),
                ('mois_index', models.PositiveSmallIntegerField(blank=True, null=True, verbose_name='Mois (1-12)')),
                ('annee', models.PositiveIntegerField(verbose_name='Année')),
                ('montant_du', models.DecimalField(decimal_places=2, default=0, max_digits=12, verbose_name='Montant dû')),
                ('montant_paye', models.DecimalField(decimal_places=2, default=0, max_digits=12, verbose_name='Montant payé')),
                ('montant_restant', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('statut', models.CharField(choices=[('paye', 'Payé'), ('partiel', 'Partiel'), ('impaye', 'Impayé')], default='impaye', max_length=20)),
                ('date_paiement', models.DateField(default=django.utils.timezone.localdate)),
                ('mode_paiement', models.CharField(choices=[('especes', 'Espèces'), ('virement', 'Virement bancaire'), ('mobile_money', 'Mobile Money'), ('cheque', 'Chèque')], default='especes', max_length=20)),
                ('numero_cheque', models.CharField(blank=True, max_length=50)),
                ('numero_mobile_money', models.CharField(blank=True, max_length=50)),
                ('remarques', models.TextField(blank=True)),
                ('paiement_multiple', models.BooleanField(default=False)),
                ('groupe_id', models.CharField(blank=True, db_index=True, max_length=64, null=True)),
                ('total_mois_payes', models.PositiveSmallIntegerField(default=1)),
                ('montant_total_paye', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('index_in_group', models.PositiveSmallIntegerField(default=0)),
                ('is_premier_du_groupe', models.BooleanField(default=True)),
                ('mois_du_groupe', models.JSONField(blank=True, default=list)),
                ('date_creation', models.DateTimeField(default=django.utils.timezone.now)),
                ('locataire', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='paiements', to='core.locataire')),
            ],
            options={
                'verbose_name': 'Paiement',
                'verbose_name_plural': 'Paiements',
                'ordering': ['-annee', '-mois_index', 'locataire'],
                'indexes': [models.Index(fields=['annee', 'mois_index'], name='paiement_periode_idx')],
            },
        ),
        migrations.CreateModel(
            name='ArchiveReversement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('periode', models.CharField(help_text='AAAA-MM', max_length=7)),
                ('montant_brut', models.DecimalField(decimal_places=2, max_digits=12)),
                ('taux_commission', models.DecimalField(decimal_places=2, max_digits=5)),
                ('montant_commission', models.DecimalField(decimal_places=2, max_digits=12)),
                ('montant_net', models.DecimalField(decimal_places=2, max_digits=12)),
                ('paiements', models.JSONField(blank=True, default=list, encoder=django.core.serializers.json.DjangoJSONEncoder)),
                ('total_paiements', models.PositiveIntegerField(default=0)),
                ('statut', models.CharField(default='valide', max_length=20)),
                ('date_validation', models.DateTimeField(default=django.utils.timezone.now)),
                ('proprietaire', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='reversements', to='core.proprietaire')),
            ],
            options={
                'verbose_name': 'Reversement archivé',
                'verbose_name_plural': 'Reversements archivés',
                'ordering': ['-date_validation'],
            },
        ),
        migrations.AddConstraint(
            model_name='archivereversement',
            constraint=models.UniqueConstraint(fields=('proprietaire', 'periode'), name='reversement_unique_par_periode'),
        ),
        migrations.CreateModel(
            name='ArchiveMensuelle',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('periode', models.CharField(help_text='AAAA-MM', max_length=7, unique=True)),
                ('libelle', models.CharField(max_length=50)),
                ('paiements', models.JSONField(blank=True, default=list, encoder=django.core.serializers.json.DjangoJSONEncoder)),
                ('total_paiements', models.PositiveIntegerField(default=0)),
                ('montant_total', models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                ('date_archivage', models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                'verbose_name': 'Archive mensuelle',
                'verbose_name_plural': 'Archives mensuelles',
                'ordering': ['-periode'],
            },
        ),
    ]
