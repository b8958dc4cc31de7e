from django import forms

from catalog_import.models import ImportJob


class ImportUploadForm(forms.Form):
    """Upload a catalog file and choose how it is reconciled."""

    file = forms.FileField(
        label="Catalog file",
        help_text="CSV or Excel workbook; the first row holds column names.",
    )
    import_type = forms.ChoiceField(
        choices=ImportJob.ImportType.choices,
        required=False,
        label="Import type",
    )
    mode = forms.ChoiceField(
        choices=ImportJob.Mode.choices,
        required=False,
        label="Mode",
    )

    def clean_import_type(self):
        return self.cleaned_data.get("import_type") or ImportJob.ImportType.FULL

    def clean_mode(self):
        return self.cleaned_data.get("mode") or ImportJob.Mode.UPSERT
