"""
CodaServer Command Builder

Validates caller arguments and builds CodaServer command strings for the
SET APPLICATION, SHOW and DESCRIBE command families.

Filter and ordering fragments are inserted verbatim. All assembly goes through
_assemble(), so escaping only needs to be added in one place.

License: Mozilla Public License 2.0
"""

import logging
from typing import Any, Callable, Optional

from ..errors import ValidationError

logger = logging.getLogger(__name__)

ENVIRONMENTS = ('dev', 'test', 'prod')


def _present(value: Any) -> bool:
    return value is not None and value != ''


class CommandBuilder:
    """
    Builds CodaServer commands and hands them to a dispatch callable.

    Every public method returns whatever the dispatch callable returns,
    normally a QueryResult from CodaServerSession.query().
    """

    def __init__(self, dispatch: Callable[[str], Any]):
        """
        Initialize command builder.

        Args:
            dispatch: Callable that executes a command string
        """
        self.dispatch = dispatch

    # ------------------------------------------------------------------
    # Assembly and validation helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _clause(keyword: str, value: Any) -> Optional[str]:
        if _present(value):
            return f"{keyword} {value}"
        return None

    @staticmethod
    def _assemble(*parts: Optional[str], where: Optional[str] = None,
                  order_by: Optional[str] = None) -> str:
        """
        Join the present command parts and append the filter and ordering fragments.

        Args:
            parts: Command keywords and clauses; None entries are skipped
            where: Filter fragment, inserted verbatim after WHERE
            order_by: Ordering fragment, inserted verbatim after ORDER BY

        Returns:
            Command string
        """
        pieces = [part for part in parts if part]
        if _present(where):
            pieces.append(f"WHERE {where}")
        if _present(order_by):
            pieces.append(f"ORDER BY {order_by}")
        return ' '.join(pieces)

    @staticmethod
    def _require(value: Any, parameter: str, label: str):
        if not _present(value):
            raise ValidationError(f"{label} must be specified", parameter=parameter)

    @staticmethod
    def _check_application(application: Optional[str], environment: Optional[str]):
        """Application and environment must be given together, with a known environment"""
        if _present(environment) and not _present(application):
            raise ValidationError("Environment requires an application be specified",
                                  parameter='application')
        if _present(application):
            if not _present(environment):
                raise ValidationError("Application must have an environment specified",
                                      parameter='environment')
            if str(environment).lower() not in ENVIRONMENTS:
                raise ValidationError(
                    f"Invalid environment '{environment}', expected one of {', '.join(ENVIRONMENTS)}",
                    parameter='environment'
                )

    @staticmethod
    def _check_user_group(user: Optional[str], group: Optional[str]):
        if _present(group) and not _present(user):
            raise ValidationError("Cannot specify a group name without a username", parameter='user')

    @staticmethod
    def _check_user_role(user: Optional[str], role: Optional[str], required: bool = False):
        if _present(role) and _present(user):
            raise ValidationError("Cannot specify both a username and a role name", parameter='role')
        if required and not _present(role) and not _present(user):
            raise ValidationError("Must specify either a username or a role name", parameter='user')

    @staticmethod
    def _for_application(application: Optional[str], environment: Optional[str]) -> Optional[str]:
        if _present(application):
            return f"FOR APPLICATION {application}.{environment}"
        return None

    def _dispatch(self, command: str) -> Any:
        logger.debug(f"Built command: {command}")
        return self.dispatch(command)

    def _show(self, entity: str, where: Optional[str], order_by: Optional[str]) -> Any:
        return self._dispatch(self._assemble(f"SHOW {entity}", where=where, order_by=order_by))

    def _describe(self, entity: str, name: Any, parameter: str, label: str,
                  suffix: Optional[str] = None) -> Any:
        self._require(name, parameter, label)
        return self._dispatch(self._assemble(f"DESCRIBE {entity}", str(name), suffix))

    def _show_object_permissions(self, kind: Optional[str], user: Optional[str],
                                 group: Optional[str], role: Optional[str],
                                 where: Optional[str], order_by: Optional[str],
                                 role_required: bool = False) -> Any:
        self._check_user_group(user, group)
        self._check_user_role(user, role, required=role_required)

        verb = f"SHOW {kind} PERMISSIONS" if kind else "SHOW PERMISSIONS"
        command = self._assemble(
            verb,
            self._clause("FOR ROLE", role),
            self._clause("FOR USER", user),
            self._clause("IN GROUP", group),
            where=where,
            order_by=order_by
        )
        return self._dispatch(command)

    # ------------------------------------------------------------------
    # SET APPLICATION
    # ------------------------------------------------------------------

    def set_application(self, application: str, environment: str = 'dev',
                        group: Optional[str] = None) -> Any:
        """
        Set the application, environment and optional group for the session.

        Many commands require this to have been done first.

        Args:
            application: Application name
            environment: One of dev, test, prod (case-insensitive)
            group: Optional group name

        Returns:
            Dispatch result
        """
        self._require(application, 'application', "Application")
        if not _present(environment) or str(environment).lower() not in ENVIRONMENTS:
            raise ValidationError("Invalid environment", parameter='environment')

        command = self._assemble(
            f"SET APPLICATION {application}.{environment}",
            self._clause("IN GROUP", group)
        )
        return self._dispatch(command)

    # ------------------------------------------------------------------
    # SHOW
    # ------------------------------------------------------------------

    def show_users(self, group: Optional[str] = None, application: Optional[str] = None,
                   environment: Optional[str] = None, where: Optional[str] = None,
                   order_by: Optional[str] = None) -> Any:
        """
        List server users, optionally limited to a group and/or application.

        Args:
            group: Group name
            application: Application name, requires environment
            environment: dev, test or prod, requires application
            where: Filter fragment
            order_by: Ordering fragment
        """
        self._check_application(application, environment)
        command = self._assemble(
            "SHOW USERS",
            self._clause("IN GROUP", group),
            self._for_application(application, environment),
            where=where,
            order_by=order_by
        )
        return self._dispatch(command)

    def show_groups(self, user: Optional[str] = None, application: Optional[str] = None,
                    environment: Optional[str] = None, where: Optional[str] = None,
                    order_by: Optional[str] = None) -> Any:
        """
        List groups, optionally those of one user and/or one application.

        Args:
            user: Username
            application: Application name, requires environment
            environment: dev, test or prod, requires application
            where: Filter fragment
            order_by: Ordering fragment
        """
        self._check_application(application, environment)
        command = self._assemble(
            "SHOW GROUPS",
            self._clause("OF USER", user),
            self._for_application(application, environment),
            where=where,
            order_by=order_by
        )
        return self._dispatch(command)

    def show_types(self, where: Optional[str] = None, order_by: Optional[str] = None) -> Any:
        return self._show("TYPES", where, order_by)

    def show_datasources(self, where: Optional[str] = None, order_by: Optional[str] = None) -> Any:
        return self._show("DATASOURCES", where, order_by)

    def show_sessions(self, where: Optional[str] = None, order_by: Optional[str] = None) -> Any:
        return self._show("SESSIONS", where, order_by)

    def show_applications(self, group: Optional[str] = None, where: Optional[str] = None,
                          order_by: Optional[str] = None) -> Any:
        """List applications, optionally only those in a group"""
        command = self._assemble(
            "SHOW APPLICATIONS",
            self._clause("IN GROUP", group),
            where=where,
            order_by=order_by
        )
        return self._dispatch(command)

    def show_server_permissions(self, user: str, where: Optional[str] = None,
                                order_by: Optional[str] = None) -> Any:
        """Server permissions held by a user"""
        self._require(user, 'user', "Username")
        command = self._assemble(
            f"SHOW SERVER PERMISSIONS FOR USER {user}",
            where=where,
            order_by=order_by
        )
        return self._dispatch(command)

    def show_application_permissions(self, user: str, group: Optional[str] = None,
                                     where: Optional[str] = None,
                                     order_by: Optional[str] = None) -> Any:
        """Permissions a user holds in the session's application"""
        self._require(user, 'user', "Username")
        command = self._assemble(
            f"SHOW APPLICATION PERMISSIONS FOR USER {user}",
            self._clause("IN GROUP", group),
            where=where,
            order_by=order_by
        )
        return self._dispatch(command)

    # Application objects; these need SET APPLICATION first

    def show_tables(self, where: Optional[str] = None, order_by: Optional[str] = None) -> Any:
        return self._show("TABLES", where, order_by)

    def show_forms(self, where: Optional[str] = None, order_by: Optional[str] = None) -> Any:
        return self._show("FORMS", where, order_by)

    def show_procedures(self, where: Optional[str] = None, order_by: Optional[str] = None) -> Any:
        return self._show("PROCEDURES", where, order_by)

    def show_indexes(self, where: Optional[str] = None, order_by: Optional[str] = None) -> Any:
        return self._show("INDEXES", where, order_by)

    def show_crons(self, where: Optional[str] = None, order_by: Optional[str] = None) -> Any:
        return self._show("CRONS", where, order_by)

    def show_table_triggers(self, table: str, where: Optional[str] = None,
                            order_by: Optional[str] = None) -> Any:
        self._require(table, 'table', "Table name")
        return self._dispatch(self._assemble(f"SHOW TRIGGERS FOR TABLE {table}",
                                             where=where, order_by=order_by))

    def show_form_triggers(self, form: str, where: Optional[str] = None,
                           order_by: Optional[str] = None) -> Any:
        self._require(form, 'form', "Form name")
        return self._dispatch(self._assemble(f"SHOW TRIGGERS FOR FORM {form}",
                                             where=where, order_by=order_by))

    def show_roles(self, user: Optional[str] = None, group: Optional[str] = None,
                   where: Optional[str] = None, order_by: Optional[str] = None) -> Any:
        """
        List the application's roles, or those held by a user or user/group pair.

        Args:
            user: Username
            group: Group name, requires user
            where: Filter fragment
            order_by: Ordering fragment
        """
        self._check_user_group(user, group)
        command = self._assemble(
            "SHOW ROLES",
            self._clause("FOR USER", user),
            self._clause("IN GROUP", group),
            where=where,
            order_by=order_by
        )
        return self._dispatch(command)

    def show_permissions(self, user: Optional[str] = None, group: Optional[str] = None,
                         role: Optional[str] = None, where: Optional[str] = None,
                         order_by: Optional[str] = None) -> Any:
        """
        ACL-style permissions in the application for a user, user/group pair or role.

        Exactly one of user and role must be given.

        Args:
            user: Username
            group: Group name, requires user
            role: Role name, excludes user
            where: Filter fragment
            order_by: Ordering fragment
        """
        return self._show_object_permissions(None, user, group, role, where, order_by,
                                             role_required=True)

    def show_table_permissions(self, user: Optional[str] = None, group: Optional[str] = None,
                               role: Optional[str] = None, where: Optional[str] = None,
                               order_by: Optional[str] = None) -> Any:
        """Table permissions for a user, user/group pair or role"""
        return self._show_object_permissions("TABLE", user, group, role, where, order_by)

    def show_form_permissions(self, user: Optional[str] = None, group: Optional[str] = None,
                              role: Optional[str] = None, where: Optional[str] = None,
                              order_by: Optional[str] = None) -> Any:
        """Form permissions for a user, user/group pair or role"""
        return self._show_object_permissions("FORM", user, group, role, where, order_by)

    def show_procedure_permissions(self, user: Optional[str] = None, group: Optional[str] = None,
                                   role: Optional[str] = None, where: Optional[str] = None,
                                   order_by: Optional[str] = None) -> Any:
        """Procedure permissions for a user, user/group pair or role"""
        return self._show_object_permissions("PROCEDURE", user, group, role, where, order_by)

    # ------------------------------------------------------------------
    # DESCRIBE
    # ------------------------------------------------------------------

    def describe_user(self, user: str) -> Any:
        return self._describe("USER", user, 'user', "Username")

    def describe_group(self, group: str) -> Any:
        return self._describe("GROUP", group, 'group', "Group name")

    def describe_type(self, type_name: str) -> Any:
        return self._describe("TYPE", type_name, 'type_name', "Type name")

    def describe_datasource(self, datasource: str) -> Any:
        return self._describe("DATASOURCE", datasource, 'datasource', "Datasource name")

    def describe_application(self, application: str) -> Any:
        return self._describe("APPLICATION", application, 'application', "Application name")

    def describe_table(self, table: str) -> Any:
        return self._describe("TABLE", table, 'table', "Table name")

    def describe_table_columns(self, table: str) -> Any:
        return self._describe("TABLE", table, 'table', "Table name", "COLUMNS")

    def describe_form(self, form: str) -> Any:
        return self._describe("FORM", form, 'form', "Form name")

    def describe_form_fields(self, form: str) -> Any:
        return self._describe("FORM", form, 'form', "Form name", "FIELDS")

    def describe_form_statuses(self, form: str) -> Any:
        return self._describe("FORM", form, 'form', "Form name", "STATUSES")

    def describe_form_status_relationships(self, form: str) -> Any:
        return self._describe("FORM", form, 'form', "Form name", "STATUS RELATIONSHIPS")

    def describe_index(self, index: str) -> Any:
        return self._describe("INDEX", index, 'index', "Index name")

    def describe_index_columns(self, index: str) -> Any:
        return self._describe("INDEX", index, 'index', "Index name", "COLUMNS")

    def describe_procedure(self, procedure: str) -> Any:
        return self._describe("PROCEDURE", procedure, 'procedure', "Procedure name")

    def describe_procedure_parameters(self, procedure: str) -> Any:
        return self._describe("PROCEDURE", procedure, 'procedure', "Procedure name", "PARAMETERS")

    def describe_trigger(self, target: str, operation: str) -> Any:
        """
        Describe a trigger on a table or form.

        Args:
            target: Table or form name
            operation: Fully specified operation, e.g. 'BEFORE INSERT'
        """
        self._require(target, 'target', "Table or form name")
        self._require(operation, 'operation', "Operation")
        return self._dispatch(self._assemble(f"DESCRIBE TRIGGER {target} {operation}"))

    def describe_cron(self, cron: str) -> Any:
        return self._describe("CRON", cron, 'cron', "Cron name")

    def describe_cron_parameters(self, cron: str) -> Any:
        return self._describe("CRON", cron, 'cron', "Cron name", "PARAMETERS")
