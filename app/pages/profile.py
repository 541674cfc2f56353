"""
app/pages/profile.py

Patient profile: create mode when the server has none yet (404),
update mode otherwise.
"""

from __future__ import annotations

import streamlit as st

from api import patients as patients_api
from api.errors import ApiError, AuthError
from api.models import ProfileForm
from app.ui import card_close, card_open, demo_banner, full_page_error, get_session, inject_theme


def render() -> None:
    inject_theme()
    session = get_session()
    st.title("My Profile")
    demo_banner(session)

    try:
        profile = patients_api.load_profile(session.client)
    except AuthError:
        raise
    except ApiError as exc:
        full_page_error(f"Failed to load profile: {exc.message}", "profile")
        return

    creating = profile is None
    current = profile or ProfileForm()
    if creating:
        st.info("You have not created your medical profile yet. Fill in the form below.")

    card_open("Personal details")
    with st.form("profile"):
        c1, c2 = st.columns(2)
        first_name = c1.text_input("First name", value=current.first_name)
        last_name = c2.text_input("Last name", value=current.last_name)
        date_of_birth = c1.text_input("Date of birth (YYYY-MM-DD)", value=current.date_of_birth or "")
        phone_number = c2.text_input("Phone number", value=current.phone_number)
        address = st.text_input("Address", value=current.address)
        emergency_contact = st.text_input("Emergency contact", value=current.emergency_contact)
        medical_history = st.text_area("Medical history", value=current.medical_history)
        allergies = st.text_area("Allergies", value=current.allergies)
        medications = st.text_area("Medications", value=current.medications)
        submitted = st.form_submit_button("Create profile" if creating else "Save changes", type="primary")
    card_close()

    if not submitted:
        return

    form = ProfileForm(
        first_name=first_name,
        last_name=last_name,
        date_of_birth=date_of_birth or None,
        phone_number=phone_number,
        address=address,
        medical_history=medical_history,
        allergies=allergies,
        medications=medications,
        emergency_contact=emergency_contact,
    )
    try:
        if creating:
            patients_api.create_profile(session.client, form)
            st.success("Profile created successfully")
        else:
            patients_api.update_profile(session.client, form)
            st.success("Profile updated successfully")
    except AuthError:
        raise
    except ApiError as exc:
        st.error(f"Could not save profile: {exc.message}")
