"""
Catalogue déclaratif des permissions RBAC.

Source unique de vérité pour les codes de permission au format
``section.menu.action`` (``section.action`` pour les permissions d'accès à
une section). Le catalogue est synchronisé dans la table ``permissions`` au
démarrage (voir app.services.permission_service.sync_permissions_catalog).

Usage:
    from app.core.permissions_master import get_all_permissions_flat

    codes = {p["code"] for p in get_all_permissions_flat()}
"""

from typing import Any

SECTION_KEY = "_section"


def _p(action: str, label: str, sort_order: int, description: str | None = None) -> dict:
    return {
        "action": action,
        "label": label,
        "description": description or f"Permet de {label[0].lower()}{label[1:]}".rstrip("."),
        "sort_order": sort_order,
    }


PERMISSIONS_MASTER: dict[str, dict[str, list[dict]]] = {
    # ============================================================
    # GESTION COMPTABLE
    # ============================================================
    "gestion_comptable": {
        SECTION_KEY: [
            _p("acces", "Acces Gestion Comptable", 0, "Permet d'acceder a la section Gestion Comptable"),
        ],
        "tableau_de_bord": [
            _p("voir", "Voir le tableau de bord", 1),
        ],
        "segments": [
            _p("voir", "Voir les segments", 1),
            _p("creer", "Creer un segment", 2),
            _p("modifier", "Modifier un segment", 3),
            _p("supprimer", "Supprimer un segment", 4),
            _p("importer_villes", "Importer des villes", 5),
        ],
        "villes": [
            _p("voir", "Voir les villes", 1),
            _p("creer", "Creer une ville", 2),
            _p("modifier", "Modifier une ville", 3),
            _p("supprimer", "Supprimer une ville", 4),
            _p("supprimer_masse", "Suppression en masse", 5, "Permet de supprimer des villes en masse"),
        ],
        "utilisateurs": [
            _p("voir", "Voir les utilisateurs", 1),
            _p("creer", "Creer un utilisateur", 2),
            _p("modifier", "Modifier un utilisateur", 3),
            _p("supprimer", "Supprimer un utilisateur", 4),
            _p("assigner_segments", "Assigner des segments", 5),
            _p("assigner_villes", "Assigner des villes", 6),
            _p("assigner_roles", "Assigner des roles", 7),
        ],
        "roles_permissions": [
            _p("voir", "Voir les roles et permissions", 1),
            _p("creer", "Creer un role", 2),
            _p("modifier", "Modifier un role", 3),
            _p("supprimer", "Supprimer un role", 4),
        ],
        "fiches_calcul": [
            _p("voir", "Voir les fiches de calcul", 1),
            _p("creer", "Creer une fiche", 2),
            _p("modifier", "Modifier une fiche", 3),
            _p("supprimer", "Supprimer une fiche", 4),
            _p("publier", "Publier une fiche", 5),
            _p("dupliquer", "Dupliquer une fiche", 6),
            _p("exporter", "Exporter une fiche", 7),
            _p("parametres", "Parametres des fiches", 8, "Permet de gerer les parametres des fiches"),
        ],
        "declarations": [
            _p("voir", "Voir les declarations", 1),
            _p("voir_toutes", "Voir toutes les declarations", 2),
            _p("creer", "Creer une declaration", 3),
            _p("remplir", "Remplir une declaration", 4),
            _p("modifier_metadata", "Modifier les metadonnees", 5),
            _p("supprimer", "Supprimer une declaration", 6),
            _p("approuver", "Approuver une declaration", 7),
            _p("rejeter", "Rejeter une declaration", 8),
            _p("soumettre", "Soumettre une declaration", 9),
        ],
        "gestion_projet": [
            _p("voir", "Voir les projets", 1),
            _p("creer", "Creer un projet", 2),
            _p("modifier", "Modifier un projet", 3),
            _p("supprimer", "Supprimer un projet", 4),
            _p("exporter", "Exporter les projets", 5),
        ],
    },
    # ============================================================
    # FORMATION
    # ============================================================
    "formation": {
        SECTION_KEY: [
            _p("acces", "Acces Formation", 0, "Permet d'acceder a la section Formation"),
        ],
        "gestion_formations": [
            _p("voir", "Voir les formations", 1),
            _p("creer", "Creer une formation", 2),
            _p("modifier", "Modifier une formation", 3),
            _p("supprimer", "Supprimer une formation", 4),
            _p("dupliquer", "Dupliquer une formation", 5),
            _p("creer_pack", "Creer un pack", 6),
            _p("editer_contenu", "Editer le contenu", 7),
        ],
        "sessions_formation": [
            _p("voir", "Voir les sessions", 1),
            _p("creer", "Creer une session", 2),
            _p("modifier", "Modifier une session", 3),
            _p("supprimer", "Supprimer une session", 4),
            _p("ajouter_etudiant", "Ajouter un etudiant", 5),
            _p("modifier_etudiant", "Modifier un etudiant", 6),
        ],
        "analytics": [
            _p("voir", "Voir les analytics", 1),
            _p("exporter", "Exporter les analytics", 2),
            _p("changer_periode", "Changer la periode", 3),
        ],
        "rapports_etudiants": [
            _p("voir", "Voir les rapports", 1),
            _p("rechercher", "Rechercher", 2, "Permet de rechercher dans les rapports etudiants"),
            _p("exporter_csv", "Exporter en CSV", 3),
            _p("exporter_pdf", "Exporter en PDF", 4),
        ],
        "liste_etudiants": [
            _p("voir", "Voir les etudiants", 1),
            _p("creer", "Creer un etudiant", 2),
            _p("modifier", "Modifier un etudiant", 3),
            _p("supprimer", "Supprimer un etudiant", 4),
        ],
        "templates_certificats": [
            _p("voir", "Voir les templates", 1),
            _p("creer_dossier", "Creer un dossier", 2),
            _p("creer_template", "Creer un template", 3),
            _p("renommer", "Renommer", 4, "Permet de renommer un dossier ou un template"),
            _p("supprimer", "Supprimer", 5, "Permet de supprimer un dossier ou un template"),
            _p("dupliquer", "Dupliquer", 6, "Permet de dupliquer un template"),
            _p("editer_canvas", "Editer le canvas", 7),
        ],
        "certificats": [
            _p("voir", "Voir les certificats", 1),
            _p("generer", "Generer un certificat", 2),
            _p("modifier", "Modifier un certificat", 3),
            _p("supprimer", "Supprimer un certificat", 4),
            _p("telecharger", "Telecharger un certificat", 5),
        ],
        "forums": [
            _p("voir", "Voir les forums", 1),
            _p("creer_discussion", "Creer une discussion", 2),
            _p("repondre", "Repondre", 3, "Permet de repondre a une discussion"),
            _p("reagir", "Reagir", 4, "Permet de reagir a un message"),
            _p("supprimer", "Supprimer", 5, "Permet de supprimer une discussion"),
            _p("epingler", "Epingler", 6, "Permet d'epingler une discussion"),
            _p("verrouiller", "Verrouiller", 7, "Permet de verrouiller une discussion"),
            _p("moderer", "Moderer", 8, "Permet de moderer les forums"),
        ],
    },
    # ============================================================
    # RESSOURCES HUMAINES
    # ============================================================
    "ressources_humaines": {
        SECTION_KEY: [
            _p("acces", "Acces Ressources Humaines", 0, "Permet d'acceder a la section RH"),
        ],
        "boucles_validation": [
            _p("voir", "Voir les boucles de validation", 1),
            _p("creer", "Creer une boucle", 2),
            _p("modifier", "Modifier une boucle", 3),
            _p("supprimer", "Supprimer une boucle", 4),
        ],
        "gestion_horaires": [
            _p("voir", "Voir la gestion des horaires", 1),
            _p("modeles.creer", "Creer un modele d'horaire", 10),
            _p("modeles.modifier", "Modifier un modele", 11),
            _p("modeles.supprimer", "Supprimer un modele", 12),
            _p("jours_feries.creer", "Creer un jour ferie", 20),
            _p("jours_feries.modifier", "Modifier un jour ferie", 21),
            _p("jours_feries.supprimer", "Supprimer un jour ferie", 22),
            _p("conges_valides.voir", "Voir les conges valides", 30),
            _p("heures_sup.voir", "Voir les heures supplementaires", 40),
            _p("heures_sup.approuver", "Approuver les heures sup", 41),
            _p("heures_sup.rejeter", "Rejeter les heures sup", 42),
            _p("heures_sup.creer_periode", "Creer une periode HS", 43),
            _p("heures_sup.supprimer_periode", "Supprimer une periode HS", 44),
            _p("heures_sup.recalculer", "Recalculer les heures sup", 45),
            _p("config_hs.voir", "Voir la config HS", 50),
            _p("config_hs.modifier", "Modifier la config HS", 51),
        ],
        "gestion_paie": [
            _p("voir", "Voir la gestion de paie", 1),
            _p("periodes.creer", "Creer une periode de paie", 10),
            _p("periodes.ouvrir", "Ouvrir une periode", 11),
            _p("periodes.fermer", "Fermer une periode", 12),
            _p("periodes.supprimer", "Supprimer une periode", 13),
            _p("calculs.calculer", "Calculer la paie", 20),
            _p("bulletins.voir", "Voir les bulletins", 30),
            _p("bulletins.valider", "Valider un bulletin", 31),
            _p("bulletins.valider_tous", "Valider tous les bulletins", 32),
            _p("bulletins.telecharger", "Telecharger un bulletin", 33),
            _p("bulletins.exporter_cnss", "Exporter CNSS", 34),
            _p("bulletins.exporter_virements", "Exporter virements", 35),
            _p("tests.voir", "Voir les tests et logs", 40),
            _p("automatisation.voir", "Voir l'automatisation", 50),
            _p("automatisation.configurer", "Configurer l'automatisation", 51),
            _p("configuration.voir", "Voir la configuration paie", 60),
            _p("configuration.modifier", "Modifier la configuration paie", 61),
        ],
        "gestion_pointage": [
            _p("voir", "Voir le pointage", 1),
            _p("pointer", "Pointer", 2, "Permet de pointer entree et sortie"),
            _p("corriger", "Corriger le pointage", 3),
            _p("importer", "Importer le pointage", 4),
            _p("exporter", "Exporter le pointage", 5),
            _p("valider", "Valider le pointage", 6),
        ],
        "dossier_employe": [
            _p("voir", "Voir les dossiers employes", 1),
            _p("creer", "Creer un dossier", 2),
            _p("modifier", "Modifier un dossier", 3),
            _p("supprimer", "Supprimer un dossier", 4),
            _p("voir_salaire", "Voir le salaire", 5),
            _p("gerer_contrats", "Gerer les contrats", 6),
            _p("gerer_documents", "Gerer les documents", 7),
            _p("gerer_discipline", "Gerer la discipline", 8),
        ],
        "validation_demandes": [
            _p("voir", "Voir les demandes a valider", 1),
            _p("approuver", "Approuver une demande", 2),
            _p("rejeter", "Rejeter une demande", 3),
        ],
        "delegations": [
            _p("voir", "Voir les delegations", 1),
            _p("creer", "Creer une delegation", 2),
            _p("gerer_toutes", "Gerer toutes les delegations", 3),
        ],
    },
    # ============================================================
    # MON EQUIPE (managers)
    # ============================================================
    "mon_equipe": {
        SECTION_KEY: [
            _p("acces", "Acces Mon Equipe", 0, "Permet d'acceder a la section Mon Equipe"),
        ],
        "pointages_equipe": [
            _p("voir", "Voir les pointages de l'equipe", 1),
            _p("supprimer", "Supprimer un pointage", 2),
        ],
        "demandes_equipe": [
            _p("voir", "Voir les demandes de l'equipe", 1),
            _p("approuver", "Approuver une demande", 2),
            _p("rejeter", "Rejeter une demande", 3),
        ],
    },
    # ============================================================
    # MON ESPACE RH (self-service)
    # ============================================================
    "mon_espace_rh": {
        SECTION_KEY: [
            _p("acces", "Acces Mon Espace RH", 0, "Permet d'acceder a la section Mon Espace RH"),
        ],
        "mon_pointage": [
            _p("voir", "Voir mon pointage", 1),
            _p("pointer", "Pointer", 2, "Permet de pointer son entree et sa sortie"),
        ],
        "mes_demandes": [
            _p("voir", "Voir mes demandes", 1),
            _p("creer", "Creer une demande", 2),
            _p("annuler", "Annuler une demande", 3),
        ],
        "mes_bulletins": [
            _p("voir", "Voir mes bulletins", 1),
            _p("telecharger", "Telecharger un bulletin", 2),
        ],
    },
    # ============================================================
    # COMMERCIALISATION
    # ============================================================
    "commercialisation": {
        SECTION_KEY: [
            _p("acces", "Acces Commercialisation", 0, "Permet d'acceder a la section Commercialisation"),
        ],
        "tableau_de_bord": [
            _p("voir", "Voir le tableau de bord", 1, "Permet d'acceder au tableau de bord commercial"),
            _p("voir_stats", "Voir les statistiques", 2),
            _p("exporter", "Exporter", 3, "Permet d'exporter les donnees du tableau de bord"),
        ],
        "prospects": [
            _p("voir", "Voir les prospects", 1, "Permet de voir ses prospects assignes"),
            _p("voir_tous", "Voir tous les prospects", 2),
            _p("creer", "Creer un prospect", 3),
            _p("modifier", "Modifier un prospect", 4),
            _p("supprimer", "Supprimer un prospect", 5),
            _p("appeler", "Appeler un prospect", 6),
            _p("convertir", "Convertir un prospect", 7, "Permet de convertir un prospect en client"),
            _p("importer", "Importer des prospects", 8),
            _p("exporter", "Exporter des prospects", 9),
            _p("assigner", "Assigner un prospect", 10, "Permet d'assigner un prospect a un commercial"),
            _p("reinjecter", "Reinjecter un prospect", 11, "Permet de reinjecter un prospect dans le pipeline"),
        ],
        "nettoyage_prospects": [
            _p("voir", "Voir le nettoyage prospects", 1),
            _p("nettoyer", "Nettoyer les prospects", 2),
        ],
        "gestion_gcontacte": [
            _p("voir", "Voir G-Contacte", 1),
            _p("configurer", "Configurer G-Contacte", 2),
            _p("synchroniser", "Synchroniser", 3, "Permet de synchroniser les contacts Google"),
            _p("tester", "Tester la connexion", 4),
        ],
    },
}

SECTION_LABELS = {
    "gestion_comptable": "Gestion Comptable",
    "formation": "Formation",
    "ressources_humaines": "Ressources Humaines",
    "mon_equipe": "Mon Equipe",
    "mon_espace_rh": "Mon Espace RH",
    "commercialisation": "Commercialisation",
}

MENU_LABELS = {
    # Gestion Comptable
    "tableau_de_bord": "Tableau de bord",
    "segments": "Segments",
    "villes": "Villes",
    "utilisateurs": "Utilisateurs",
    "roles_permissions": "Roles & Permissions",
    "fiches_calcul": "Fiches de calcul",
    "declarations": "Declarations",
    "gestion_projet": "Gestion de Projet",
    # Formation
    "gestion_formations": "Gestion des Formations",
    "sessions_formation": "Sessions de Formation",
    "analytics": "Analytics",
    "rapports_etudiants": "Rapports Etudiants",
    "liste_etudiants": "Liste des Etudiants",
    "templates_certificats": "Templates de Certificats",
    "certificats": "Certificats",
    "forums": "Forums",
    # Ressources Humaines
    "boucles_validation": "Boucles de Validation",
    "gestion_horaires": "Gestion des Horaires",
    "gestion_paie": "Gestion de Paie",
    "gestion_pointage": "Gestion Pointage",
    "dossier_employe": "Dossier Employe",
    "validation_demandes": "Validation des Demandes",
    "delegations": "Delegations",
    # Mon Equipe
    "pointages_equipe": "Pointages equipe",
    "demandes_equipe": "Demandes equipe",
    # Mon Espace RH
    "mon_pointage": "Mon Pointage",
    "mes_demandes": "Mes Demandes",
    "mes_bulletins": "Mes Bulletins",
    # Commercialisation
    "prospects": "Prospects",
    "nettoyage_prospects": "Nettoyage Prospects",
    "gestion_gcontacte": "Gestion G-Contacte",
}


def get_section_label(section_key: str) -> str:
    return SECTION_LABELS.get(section_key, section_key)


def get_menu_label(menu_key: str) -> str:
    return MENU_LABELS.get(menu_key, menu_key)


def build_permission_code(section_key: str, menu_key: str, action: str) -> str:
    """Construit le code complet d'une permission (section.menu.action ou section.action)."""
    if menu_key == SECTION_KEY:
        return f"{section_key}.{action}"
    return f"{section_key}.{menu_key}.{action}"


def get_all_permissions_flat() -> list[dict[str, Any]]:
    """
    Liste à plat de toutes les permissions du catalogue.

    Returns:
        [{code, label, description, module, menu, sort_order}, ...]
        Pour les permissions de section, menu == module.
    """
    permissions = []
    for section_key, menus in PERMISSIONS_MASTER.items():
        for menu_key, actions in menus.items():
            for perm in actions:
                permissions.append(
                    {
                        "code": build_permission_code(section_key, menu_key, perm["action"]),
                        "label": perm["label"],
                        "description": perm["description"],
                        "module": section_key,
                        "menu": section_key if menu_key == SECTION_KEY else menu_key,
                        "sort_order": perm["sort_order"],
                    }
                )
    return permissions


def get_permissions_tree() -> dict[str, Any]:
    """
    Permissions groupées par section puis par menu (vue arborescente).

    Returns:
        {section: {label, permissions?, menus: {menu: {label, permissions}}}}
    """
    tree: dict[str, Any] = {}
    for section_key, menus in PERMISSIONS_MASTER.items():
        node: dict[str, Any] = {"label": get_section_label(section_key), "menus": {}}
        for menu_key, actions in menus.items():
            entries = [
                {"code": build_permission_code(section_key, menu_key, perm["action"]), **perm}
                for perm in actions
            ]
            if menu_key == SECTION_KEY:
                node["permissions"] = entries
            else:
                node["menus"][menu_key] = {"label": get_menu_label(menu_key), "permissions": entries}
        tree[section_key] = node
    return tree


# =============================================================================
# Compatibilité avec les anciens codes (anglais)
# =============================================================================

LEGACY_PERMISSION_MAPPING = {
    # Accounting -> Gestion Comptable
    "accounting.dashboard.view_page": "gestion_comptable.tableau_de_bord.voir",
    "accounting.segments.view_page": "gestion_comptable.segments.voir",
    "accounting.segments.create": "gestion_comptable.segments.creer",
    "accounting.segments.update": "gestion_comptable.segments.modifier",
    "accounting.segments.delete": "gestion_comptable.segments.supprimer",
    "accounting.cities.view_page": "gestion_comptable.villes.voir",
    "accounting.cities.create": "gestion_comptable.villes.creer",
    "accounting.cities.update": "gestion_comptable.villes.modifier",
    "accounting.cities.delete": "gestion_comptable.villes.supprimer",
    "accounting.cities.bulk_delete": "gestion_comptable.villes.supprimer_masse",
    "accounting.users.view_page": "gestion_comptable.utilisateurs.voir",
    "accounting.users.create": "gestion_comptable.utilisateurs.creer",
    "accounting.users.update": "gestion_comptable.utilisateurs.modifier",
    "accounting.users.delete": "gestion_comptable.utilisateurs.supprimer",
    "accounting.users.assign_segments": "gestion_comptable.utilisateurs.assigner_segments",
    "accounting.users.assign_cities": "gestion_comptable.utilisateurs.assigner_villes",
    "accounting.calculation_sheets.view_page": "gestion_comptable.fiches_calcul.voir",
    "accounting.declarations.view_page": "gestion_comptable.declarations.voir",
    "accounting.projects.view_page": "gestion_comptable.gestion_projet.voir",
    "system.roles.view_page": "gestion_comptable.roles_permissions.voir",
    "system.roles.create": "gestion_comptable.roles_permissions.creer",
    "system.roles.update": "gestion_comptable.roles_permissions.modifier",
    "system.roles.delete": "gestion_comptable.roles_permissions.supprimer",
    # Training -> Formation
    "training.formations.view_page": "formation.gestion_formations.voir",
    "training.sessions.view_page": "formation.sessions_formation.voir",
    "training.analytics.view_page": "formation.analytics.voir",
    "training.student_reports.view_page": "formation.rapports_etudiants.voir",
    "training.students.view_page": "formation.liste_etudiants.voir",
    "training.certificate_templates.view_page": "formation.templates_certificats.voir",
    "training.forums.view_page": "formation.forums.voir",
    # HR -> Ressources Humaines
    "hr.validation_workflows.view_page": "ressources_humaines.boucles_validation.voir",
    "hr.schedules.view_page": "ressources_humaines.gestion_horaires.voir",
    "hr.payroll.view_page": "ressources_humaines.gestion_paie.voir",
    "hr.employee_portal.view_page": "ressources_humaines.gestion_pointage.voir",
    "hr.employees.view_page": "ressources_humaines.dossier_employe.voir",
    "hr.requests_validation.view_page": "ressources_humaines.validation_demandes.voir",
    "hr.delegation.view_page": "ressources_humaines.delegations.voir",
    # HR Manager -> Mon Equipe
    "hr.manager.team_attendance": "mon_equipe.pointages_equipe.voir",
    "hr.manager.team_requests": "mon_equipe.demandes_equipe.voir",
    # HR Self-Service -> Mon Espace RH
    "hr.clocking.self": "mon_espace_rh.mon_pointage.voir",
    "hr.my.requests": "mon_espace_rh.mes_demandes.voir",
    "hr.my.payslips": "mon_espace_rh.mes_bulletins.voir",
    # Commercialisation
    "commercialisation.dashboard.view_page": "commercialisation.tableau_de_bord.voir",
    "commercialisation.prospects.view_page": "commercialisation.prospects.voir",
    "commercialisation.prospects.clean": "commercialisation.nettoyage_prospects.nettoyer",
    "commercialisation.google_contacts.view_page": "commercialisation.gestion_gcontacte.voir",
}

# Préfixes de modules anglais -> français (le plus spécifique gagne)
EN_TO_FR_PREFIX_MAP = {
    "hr.leaves.": "ressources_humaines.conges.",
    "hr.employees.": "ressources_humaines.dossier_employe.",
    "hr.attendance.": "ressources_humaines.gestion_pointage.",
    "hr.payroll.": "ressources_humaines.gestion_paie.",
    "hr.validation_workflows.": "ressources_humaines.boucles_validation.",
    "hr.holidays.": "ressources_humaines.gestion_horaires.jours_feries.",
    "hr.settings.": "ressources_humaines.parametres.",
    "hr.dashboard.": "ressources_humaines.tableau_de_bord.",
    "hr.delegation.": "ressources_humaines.delegations.",
    "hr.employee_portal.": "ressources_humaines.gestion_pointage.",
    "training.sessions.": "formation.sessions_formation.",
    "training.formations.": "formation.gestion_formations.",
    "training.students.": "formation.liste_etudiants.",
    "training.certificate_templates.": "formation.templates_certificats.",
    "training.certificates.": "formation.certificats.",
    "training.analytics.": "formation.analytics.",
    "training.forums.": "formation.forums.",
    "accounting.actions.": "gestion_comptable.gestion_projet.",
    "accounting.calculation_sheets.": "gestion_comptable.fiches_calcul.",
    "accounting.projects.": "gestion_comptable.gestion_projet.",
    "accounting.users.": "gestion_comptable.utilisateurs.",
    "accounting.cities.": "gestion_comptable.villes.",
    "accounting.segments.": "gestion_comptable.segments.",
    "accounting.declarations.": "gestion_comptable.declarations.",
    "accounting.dashboard.": "gestion_comptable.tableau_de_bord.",
    "system.roles.": "gestion_comptable.roles_permissions.",
    "commercialisation.visits.": "commercialisation.visites.",
    "commercialisation.prospects.": "commercialisation.prospects.",
    # Préfixes de repli
    "accounting.": "gestion_comptable.",
    "training.": "formation.",
    "hr.": "ressources_humaines.",
}

# Suffixes d'actions anglais -> français
EN_TO_FR_ACTION_MAP = {
    ".view_page": ".voir",
    ".view_list": ".voir_liste",
    ".view": ".voir",
    ".view_all": ".voir_tous",
    ".view_analytics": ".voir_analytics",
    ".create": ".creer",
    ".update": ".modifier",
    ".edit": ".modifier",
    ".delete": ".supprimer",
    ".approve": ".approuver",
    ".reject": ".rejeter",
    ".submit": ".soumettre",
    ".validate": ".valider",
    ".export": ".exporter",
    ".import": ".importer",
    ".manage": ".gerer",
    ".verify": ".verifier",
    ".cancel": ".annuler",
    ".clean": ".nettoyer",
    ".call": ".appeler",
    ".reinject": ".reinjecter",
    ".assign": ".assigner",
    ".duplicate": ".dupliquer",
    ".publish": ".publier",
    ".fill": ".remplir",
    ".config": ".configurer",
    ".calculate": ".calculer",
    ".clock_in_out": ".pointer",
    ".generate": ".generer",
    ".add_student": ".ajouter_etudiant",
    ".edit_student": ".modifier_etudiant",
    ".create_folder": ".creer_dossier",
    ".assign_roles": ".assigner_roles",
    ".assign_segments": ".assigner_segments",
    ".assign_cities": ".assigner_villes",
    ".periods.create": ".periodes.creer",
    ".periods.close": ".periodes.fermer",
}

_SORTED_PREFIXES = sorted(EN_TO_FR_PREFIX_MAP.items(), key=lambda item: len(item[0]), reverse=True)
_SORTED_ACTIONS = sorted(EN_TO_FR_ACTION_MAP.items(), key=lambda item: len(item[0]), reverse=True)


def convert_legacy_permission(code: str) -> str:
    """Convertit un ancien code de permission via la table explicite (inchangé sinon)."""
    return LEGACY_PERMISSION_MAPPING.get(code, code)


def to_french_permission(code: str) -> str:
    """
    Convertit un code de permission anglais en code français.

    Un seul remplacement de préfixe de module (le plus long d'abord), puis un
    seul remplacement de suffixe d'action (le plus long d'abord). Les codes
    déjà en français sont renvoyés tels quels.
    """
    if not code:
        return code

    converted = code
    for en, fr in _SORTED_PREFIXES:
        if en in converted:
            converted = converted.replace(en, fr, 1)
            break

    for en, fr in _SORTED_ACTIONS:
        if converted.endswith(en):
            converted = converted[: -len(en)] + fr
            break

    return converted


def normalize_permission_code(code: str) -> str:
    """Table explicite d'abord, conversion EN -> FR ensuite."""
    legacy = convert_legacy_permission(code)
    if legacy != code:
        return legacy
    return to_french_permission(code)
