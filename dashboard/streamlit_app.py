from datetime import date

import pandas as pd
import pydantic
import streamlit as st

from herdcycle.config import settings
from herdcycle.db import get_db, init_db
from herdcycle.exceptions import HerdcycleError
from herdcycle.logging import setup_logging
from herdcycle.models import Farm, Insemination, INSEMINATION_STATUSES
from herdcycle.schemas import CalfCreate, CalvingCreate, InseminationCreate, InseminationStatusUpdate
from herdcycle.services.breeding import cows_needing_insemination, upcoming_calvings
from herdcycle.services.herd import BREEDING_FEMALE_TYPES, breeding_cow, insemination_history, list_animals
from herdcycle.services.notifications import (
    build_notifications, list_notifications, mark_all_read, sync_notifications_for_farm, unread_count,
)
from herdcycle.services.recording import record_calving, record_insemination, update_insemination_status
from herdcycle.services.reporting import breeding_overview_frame, notifications_frame, priority_counts

st.set_page_config(page_title="Herd Breeding Board", layout="wide")
st.title("🐄 Herd Breeding Board")
st.caption("Calvings, insemination windows and notifications for one farm.")


@st.cache_resource
def configure():
    setup_logging()
    init_db()


configure()


def render(db):
    farms = db.query(Farm).order_by(Farm.id).all()
    if not farms:
        st.info("No farms yet. Run `python data/seed.py` to create demo data.")
        return

    farm_ids = [f.id for f in farms]
    default_index = farm_ids.index(settings.DEFAULT_FARM_ID) if settings.DEFAULT_FARM_ID in farm_ids else 0

    with st.sidebar:
        st.header("Farm")
        farm_names = {f.id: f.name for f in farms}
        farm_id = st.selectbox("Farm", options=farm_ids, index=default_index, format_func=lambda i: f"{i} - {farm_names[i]}")
        farm = next(f for f in farms if f.id == farm_id)
        as_of = st.date_input("As of", value=date.today())

    breeders = [
        a for a in list_animals(db, farm.id, species="cattle")
        if a.type in BREEDING_FEMALE_TYPES and a.cow_id is not None
    ]
    breeder_tags = [a.tag_number for a in breeders]
    breeder_map = {a.tag_number: a for a in breeders}
    bull_tags = {a.bull_id: a.tag_number for a in list_animals(db, farm.id, species="cattle", animal_type="Bull")}

    tabs = st.tabs(["Notifications", "Upcoming Calvings", "Needs Insemination", "Herd", "Record Insemination", "Record Calving"])

    # --------------------
    # Notifications
    # --------------------
    with tabs[0]:
        st.subheader("Notifications")
        notifications = build_notifications(db, farm.id, as_of)
        counts = priority_counts(notifications)

        m1, m2, m3 = st.columns(3)
        m1.metric("High", counts["high"])
        m2.metric("Medium", counts["medium"])
        if farm.farmer is not None:
            m3.metric("Unread (stored)", unread_count(db, farm.farmer.id))

        df = notifications_frame(notifications)
        if df.empty:
            st.info("No notifications at this time.")
        else:
            st.dataframe(df, use_container_width=True)

        c1, c2 = st.columns(2)
        with c1:
            if st.button("Deliver new notifications to farmer"):
                created = sync_notifications_for_farm(db, farm.id, as_of)
                st.success(f"Stored {len(created)} new notification(s).")
        with c2:
            if farm.farmer is not None and st.button("Mark all as read"):
                st.success(f"Marked {mark_all_read(db, farm.farmer.id)} notification(s) as read.")

        if farm.farmer is not None:
            stored = list_notifications(db, farm.farmer.id)
            if stored:
                st.markdown("#### Delivered")
                st.dataframe(pd.DataFrame([
                    {
                        "created_at": n.created_at,
                        "priority": n.priority.upper(),
                        "message": n.message,
                        "read": n.read_at is not None,
                    }
                    for n in stored
                ]), use_container_width=True)

    # --------------------
    # Upcoming calvings
    # --------------------
    with tabs[1]:
        st.subheader("Final month of gestation")
        rows = upcoming_calvings(db, farm.id, as_of)
        dfU = pd.DataFrame([
            {k: v for k, v in r.items() if k != "progress"} | {"progress_pct": r["progress"]["progress_percentage"]}
            for r in rows
        ])
        if dfU.empty:
            st.info("No cows in their final month.")
        else:
            st.dataframe(dfU.sort_values("days_remaining"), use_container_width=True)

    # --------------------
    # Needs insemination
    # --------------------
    with tabs[2]:
        st.subheader("Cows needing insemination")
        rows = cows_needing_insemination(db, farm.id, as_of)
        dfN = pd.DataFrame([
            {k: v for k, v in r.items() if k != "latest_insemination"}
            | {"latest_status": (r["latest_insemination"] or {}).get("status")}
            for r in rows
        ])
        if dfN.empty:
            st.info("No open cows in the alert band.")
        else:
            status_filter = st.selectbox("Status", ["(all)", "ready", "overdue", "approaching"], index=0)
            if status_filter != "(all)":
                dfN = dfN[dfN["status"] == status_filter]
            st.dataframe(dfN, use_container_width=True)

    # --------------------
    # Herd overview
    # --------------------
    with tabs[3]:
        st.subheader("Breeding overview")
        dfH = breeding_overview_frame(db, farm.id, as_of)
        if dfH.empty:
            st.info("No breeding females on this farm.")
        else:
            st.dataframe(dfH, use_container_width=True)
            st.bar_chart(dfH["pregnancy_status"].value_counts())
            st.download_button(
                "Download overview CSV",
                dfH.to_csv(index=False).encode("utf-8"),
                file_name="breeding_overview.csv",
                mime="text/csv",
            )

    # --------------------
    # Record insemination
    # --------------------
    with tabs[4]:
        st.subheader("Record insemination")
        if not breeder_tags:
            st.info("No cows or heifers on this farm.")
        else:
            tag = st.selectbox("Cow", options=breeder_tags, key="ins_cow")
            with st.form("insemination_form"):
                ins_date = st.date_input("Insemination date", value=as_of)
                bull_id = st.selectbox("Sire", options=[None] + list(bull_tags),
                                       format_func=lambda b: "(unknown)" if b is None else bull_tags[b])
                notes = st.text_area("Notes", value="")
                submitted = st.form_submit_button("Record")

            if submitted:
                try:
                    payload = InseminationCreate(
                        insemination_date=ins_date,
                        notes=notes or None,
                        bull_id=bull_id,
                    )
                    cow = breeding_cow(breeder_map[tag])
                    ins = record_insemination(db, cow, payload.insemination_date, payload.notes, "dashboard", payload.bull_id)
                    st.success(f"Recorded pending insemination #{ins.id} for {tag}.")
                except (HerdcycleError, pydantic.ValidationError) as e:
                    st.error(f"Record insemination failed: {e}")

            st.markdown("#### History")
            history = insemination_history(db, breeder_map[tag].cow)
            if history:
                st.dataframe(pd.DataFrame([
                    {"id": i.id, "date": i.insemination_date, "status": i.status, "notes": i.notes}
                    for i in history
                ]), use_container_width=True)

                with st.form("status_form"):
                    ins_id = st.selectbox("Insemination", options=[i.id for i in history])
                    new_status = st.selectbox("New status", options=list(INSEMINATION_STATUSES))
                    submitted = st.form_submit_button("Update status")
                if submitted:
                    try:
                        update = InseminationStatusUpdate(status=new_status)
                        update_insemination_status(db, db.get(Insemination, ins_id), update.status)
                        st.success(f"Insemination #{ins_id} is now {new_status}.")
                    except (HerdcycleError, pydantic.ValidationError) as e:
                        st.error(f"Status update failed: {e}")

    # --------------------
    # Record calving
    # --------------------
    with tabs[5]:
        st.subheader("Record calving")
        if not breeder_tags:
            st.info("No cows or heifers on this farm.")
        else:
            tag = st.selectbox("Cow", options=breeder_tags, key="calving_cow")
            with st.form("calving_form"):
                calving_date = st.date_input("Calving date", value=as_of)
                successful = st.checkbox("Successful", value=True)
                notes = st.text_area("Notes", value="")
                c1, c2, c3 = st.columns(3)
                with c1:
                    calf_tag = st.text_input("Calf tag (optional)", value="")
                with c2:
                    calf_type = st.selectbox("Calf type", ["Heifer", "Bull", "Steer", "Cow"])
                with c3:
                    calf_name = st.text_input("Calf name", value="")
                submitted = st.form_submit_button("Record")

            if submitted:
                try:
                    calves = [CalfCreate(tag_number=calf_tag.strip(), type=calf_type, name=calf_name or None)] if calf_tag.strip() else None
                    payload = CalvingCreate(calving_date=calving_date, is_successful=successful, notes=notes or None, calves=calves)
                    cow = breeding_cow(breeder_map[tag])
                    result = record_calving(db, cow, payload.calving_date, payload.is_successful, payload.calves, payload.notes, "dashboard")
                    st.success(f"Calving recorded for {tag}; {len(result['calves'])} calf record(s) created.")
                except (HerdcycleError, pydantic.ValidationError) as e:
                    st.error(f"Record calving failed: {e}")


with get_db() as db:
    render(db)
