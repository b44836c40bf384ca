import json
import os
import streamlit as st
import yaml
from dotenv import load_dotenv
from catalog_acl.errors import AccessControlConfigError, AccessDeniedError
from catalog_acl.file_based import FileBasedSystemAccessControl
from catalog_acl.models import AccessControlRules, Privilege
from catalog_acl.names import Identity, QualifiedObjectName, SchemaTableName
from catalog_acl.parser import dump_rules, load_rules, read_rules_file

load_dotenv()

st.set_page_config(page_title="Catalog ACL Explorer", layout="wide")
st.title("🔐 Catalog ACL Explorer (File-based)")

# check name -> check(access_control, identity, table_name)
CHECKS = {
    "access catalog": lambda ac, i, r: ac.check_can_access_catalog(i, r.catalog_name),
    "show schemas": lambda ac, i, r: ac.check_can_show_schemas(i, r.catalog_name),
    "create schema": lambda ac, i, r: ac.check_can_create_schema(i, r.schema),
    "drop schema": lambda ac, i, r: ac.check_can_drop_schema(i, r.schema),
    "show tables": lambda ac, i, r: ac.check_can_show_tables(i, r.schema),
    "create table": lambda ac, i, r: ac.check_can_create_table(i, r),
    "drop table": lambda ac, i, r: ac.check_can_drop_table(i, r),
    "select from table": lambda ac, i, r: ac.check_can_select_from_table(i, r),
    "insert into table": lambda ac, i, r: ac.check_can_insert_into_table(i, r),
    "delete from table": lambda ac, i, r: ac.check_can_delete_from_table(i, r),
    "add columns": lambda ac, i, r: ac.check_can_add_columns(i, r),
    "rename column": lambda ac, i, r: ac.check_can_rename_column(i, r),
    "create view": lambda ac, i, r: ac.check_can_create_view(i, r),
    "drop view": lambda ac, i, r: ac.check_can_drop_view(i, r),
    "select from view": lambda ac, i, r: ac.check_can_select_from_view(i, r),
    "grant SELECT": lambda ac, i, r: ac.check_can_grant_table_privilege(i, Privilege.SELECT, r, "grantee", False),
}

with st.sidebar:
    st.header("Rules")
    if "rules" not in st.session_state:
        st.session_state.rules = AccessControlRules.empty()
        default_path = os.getenv("ACL_CONFIG_FILE")
        if default_path:
            try:
                st.session_state.rules = read_rules_file(default_path)
            except AccessControlConfigError as e:
                st.error(f"Failed to load {default_path}: {e}")

    uploaded = st.file_uploader("Load rules (JSON or YAML)", type=["json", "yaml", "yml"])
    if uploaded:
        try:
            if uploaded.name.endswith((".yaml", ".yml")):
                obj = yaml.safe_load(uploaded)
            else:
                obj = json.load(uploaded)
            st.session_state.rules = load_rules(obj)
            st.success("Loaded rules")
        except (ValueError, yaml.YAMLError, AccessControlConfigError) as e:
            st.error(f"Failed to load: {e}")

    data = dump_rules(st.session_state.rules)
    st.download_button("Save rules.json", json.dumps(data, indent=2, ensure_ascii=False),
                       file_name="rules.json", mime="application/json")

access_control = FileBasedSystemAccessControl(st.session_state.rules)

tabs = st.tabs(["Rules", "Check Access", "Filter", "Preview JSON"])

with tabs[0]:
    for section in ("catalogs", "schemas", "tables", "views", "session_properties", "principals"):
        rows = data.get(section)
        st.subheader(section.replace("_", " ").title())
        if rows is None:
            st.caption("Not configured, table rules apply." if section == "views" else "Not configured.")
        elif not rows:
            st.caption("No rules, everything is denied.")
        else:
            st.dataframe(rows, use_container_width=True)
    st.info("Order matters (first match wins). A request no rule matches is denied.")

with tabs[1]:
    st.subheader("Evaluate a Check")
    user = st.text_input("User", value="alice")
    check_name = st.selectbox("Check", options=list(CHECKS))
    cols = st.columns(3)
    catalog = cols[0].text_input("Catalog", value="hive")
    schema = cols[1].text_input("Schema", value="default")
    table = cols[2].text_input("Table / View", value="orders")

    if st.button("Evaluate"):
        check = CHECKS[check_name]
        resource = QualifiedObjectName(catalog, schema, table)
        try:
            check(access_control, Identity(user), resource)
            st.success(f"Allowed: {user} may {check_name}")
        except AccessDeniedError as e:
            st.error(str(e))

with tabs[2]:
    st.subheader("Filter Visible Resources")
    user = st.text_input("User", value="alice", key="filter_user")
    catalogs = [c.strip() for c in st.text_area("Catalogs (one per line)", value="hive\niceberg").splitlines()
                if c.strip()]
    st.write("Visible catalogs:", sorted(access_control.filter_catalogs(Identity(user), set(catalogs))))

    catalog = st.text_input("Catalog for schemas/tables", value="hive", key="filter_catalog")
    names = [n.strip() for n in st.text_area("Schemas or schema.table names", value="default\ndefault.orders").splitlines()
             if n.strip()]
    schemas = {n for n in names if "." not in n}
    tables = {SchemaTableName(*n.split(".", 1)) for n in names if "." in n}
    identity = Identity(user)
    st.write("Visible schemas:", sorted(access_control.filter_schemas(identity, catalog, schemas)))
    st.write("Visible tables:", sorted(str(t) for t in access_control.filter_tables(identity, catalog, tables)))

with tabs[3]:
    st.subheader("Current JSON")
    st.code(json.dumps(dump_rules(st.session_state.rules), indent=2, ensure_ascii=False), language="json")
