"""
services/admin/queries.py
GraphQL documents used by the admin maid-verification workflow.
"""

MAID_LIST_FIELDS = """
    id
    user_id
    full_name
    phone_country_code
    phone_number
    nationality
    current_location
    country
    experience_years
    availability_status
    verification_status
    is_agency_managed
    agency_id
    profile_photo_url
    avatar_url
    profile_completion_percentage
    average_rating
    skills
    languages
    education_level
    preferred_salary_min
    preferred_salary_max
    preferred_currency
    primary_profession
    created_at
    updated_at
"""

GET_MAIDS = f"""
query GetMaids($where: maid_profiles_bool_exp!, $order_by: [maid_profiles_order_by!], $limit: Int, $offset: Int) {{
  maid_profiles(where: $where, order_by: $order_by, limit: $limit, offset: $offset) {{
    {MAID_LIST_FIELDS}
  }}
  maid_profiles_aggregate(where: $where) {{
    aggregate {{
      count
    }}
  }}
}}
"""

GET_MAID_STATS = """
query GetMaidStats {
  total: maid_profiles_aggregate { aggregate { count } }
  available: maid_profiles_aggregate(where: {availability_status: {_eq: "available"}}) { aggregate { count } }
  busy: maid_profiles_aggregate(where: {availability_status: {_eq: "busy"}}) { aggregate { count } }
  verified: maid_profiles_aggregate(where: {verification_status: {_eq: "verified"}}) { aggregate { count } }
  pending: maid_profiles_aggregate(where: {verification_status: {_eq: "pending"}}) { aggregate { count } }
  rejected: maid_profiles_aggregate(where: {verification_status: {_eq: "rejected"}}) { aggregate { count } }
}
"""

GET_NATIONALITIES = """
query GetNationalities {
  maid_profiles(distinct_on: nationality, where: {nationality: {_is_null: false}}, order_by: {nationality: asc}) {
    nationality
  }
}
"""

GET_LOCATIONS = """
query GetLocations {
  maid_profiles(distinct_on: current_location, where: {current_location: {_is_null: false}}, order_by: {current_location: asc}) {
    current_location
  }
}
"""

GET_MAID_BY_ID = """
query GetMaidById($id: String!) {
  maid_profiles_by_pk(id: $id) {
    id
    user_id
    full_name
    first_name
    last_name
    date_of_birth
    nationality
    religion
    marital_status
    children_count
    phone_country_code
    phone_number
    phone_verified
    alternative_phone
    current_location
    country
    state_province
    street_address
    passport_number
    passport_number_encrypted
    national_id_encrypted
    national_id_hash
    passport_expiry
    visa_status
    current_visa_status
    medical_certificate_valid
    police_clearance_valid
    primary_profession
    experience_years
    skills
    special_skills
    languages
    education_level
    work_preferences
    work_history
    previous_countries
    preferred_salary_min
    preferred_salary_max
    preferred_currency
    contract_duration_preference
    live_in_preference
    available_from
    about_me
    avatar_url
    profile_photo_url
    primary_image_processed_url
    introduction_video_url
    availability_status
    verification_status
    is_agency_managed
    agency_id
    profile_completion_percentage
    average_rating
    created_at
    updated_at
  }
}
"""

GET_MAID_DOCUMENTS = """
query GetMaidDocuments($maidId: String!) {
  maid_documents(where: {maid_id: {_eq: $maidId}}, order_by: {created_at: desc}) {
    id
    maid_id
    document_type
    type
    document_url
    file_url
    verified
    created_at
  }
}
"""

GET_AGENCY_BY_ID = """
query GetAgencyById($id: String!) {
  agency_profiles_by_pk(id: $id) {
    id
    full_name
    business_name
    business_email
    business_phone
    phone
    authorized_person_name
    authorized_person_email
    authorized_person_phone
    emergency_contact_phone
  }
}
"""

UPDATE_MAID_VERIFICATION = """
mutation UpdateMaidVerification($id: String!, $verification_status: String!) {
  update_maid_profiles_by_pk(pk_columns: {id: $id}, _set: {verification_status: $verification_status}) {
    id
    verification_status
  }
}
"""

UPDATE_MAID_STATUS = """
mutation UpdateMaidStatus($id: String!, $availability_status: String!) {
  update_maid_profiles_by_pk(pk_columns: {id: $id}, _set: {availability_status: $availability_status}) {
    id
    availability_status
  }
}
"""

BULK_UPDATE_VERIFICATION = """
mutation BulkUpdateVerification($ids: [String!]!, $verification_status: String!) {
  update_maid_profiles(where: {id: {_in: $ids}}, _set: {verification_status: $verification_status}) {
    affected_rows
  }
}
"""

BULK_UPDATE_STATUS = """
mutation BulkUpdateStatus($ids: [String!]!, $availability_status: String!) {
  update_maid_profiles(where: {id: {_in: $ids}}, _set: {availability_status: $availability_status}) {
    affected_rows
  }
}
"""

CREATE_WHATSAPP_MESSAGE = """
mutation CreateWhatsAppMessage($data: whatsapp_messages_insert_input!) {
  insert_whatsapp_messages_one(object: $data) {
    id
  }
}
"""

LOG_ADMIN_ACTIVITY = """
mutation LogAdminActivity($data: admin_activity_logs_insert_input!) {
  insert_admin_activity_logs_one(object: $data) {
    id
  }
}
"""

GET_ADMIN_ACTIVITY = """
query GetAdminActivity($where: admin_activity_logs_bool_exp!, $limit: Int, $offset: Int) {
  admin_activity_logs(where: $where, order_by: {created_at: desc}, limit: $limit, offset: $offset) {
    id
    admin_id
    action
    target_type
    target_id
    details
    created_at
  }
  admin_activity_logs_aggregate(where: $where) {
    aggregate {
      count
    }
  }
}
"""
