"""Gallery ("creations") form workflows.

Form state, validation, image preview, submission and record loading for the
create and edit pages. Each page visit owns one workflow; nothing here renders
HTML or touches the request directly.
"""
