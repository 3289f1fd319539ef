import gradio as gr

from coda_doc_exporter.attributes import COLUMN_ATTRIBUTES, DEFAULT_COLUMN_ATTRIBUTES, DEFAULT_ROW_ATTRIBUTES, ROW_ATTRIBUTES
from coda_doc_exporter.handlers import (
    ROW_COUNT_CHOICES,
    column_filter_handler,
    column_override_handler,
    export_document_handler,
    export_table_handler,
    fetch_table_handler,
    focus_table_handler,
    global_settings_handler,
    initial_state_handler,
    load_saved_document_handler,
    load_tables_handler,
    remove_saved_document_handler,
    reset_handler,
    row_override_handler,
    save_document_handler,
    select_all_columns_handler,
    select_all_tables_handler,
    select_tables_handler,
)
from coda_doc_exporter.projection import OutputMode
from coda_doc_exporter.settings import configure_logging, get_settings

settings = get_settings()
configure_logging(settings.log_level)

# --- UI Definition ---
with gr.Blocks(title="Coda Doc Exporter") as demo:
    gr.Markdown("# Coda Doc Exporter")
    gr.Markdown("Connect to a Coda document, pick tables, columns and attributes, and export the result as JSON.")

    # State
    session_state = gr.State()

    with gr.Row():
        # Left Panel: Document & Tables
        with gr.Column(scale=1):
            gr.Markdown("### 1. Document")
            api_token = gr.Textbox(label="API Token", type="password")
            doc_id = gr.Textbox(label="Document ID", placeholder="e.g. AbCDeFGH")
            with gr.Row():
                load_tables_btn = gr.Button("Load Tables", variant="primary")
                save_doc_btn = gr.Button("Save Document")
                reset_btn = gr.Button("Reset")

            with gr.Accordion("Saved Documents", open=False):
                saved_docs = gr.Dropdown(label="Saved Documents", choices=[], interactive=True)
                with gr.Row():
                    load_saved_btn = gr.Button("Load Saved")
                    remove_saved_btn = gr.Button("Remove Saved")

            status_msg = gr.Textbox(label="Status", interactive=False)
            doc_title = gr.Markdown("No document loaded.")

            gr.Markdown("### 2. Tables")
            tables_selector = gr.CheckboxGroup(label="Tables to export", choices=[], interactive=True)
            with gr.Row():
                select_all_tables_btn = gr.Button("Select All", size="sm")
                deselect_all_tables_btn = gr.Button("Deselect All", size="sm")

            gr.Markdown("### 3. Table Settings")
            table_picker = gr.Dropdown(label="Table", choices=[], interactive=True)
            row_count = gr.Radio(choices=ROW_COUNT_CHOICES, value="1", label="Rows")
            fetch_table_btn = gr.Button("Fetch Table")
            column_filter = gr.CheckboxGroup(label="Columns", choices=[], interactive=True)
            with gr.Row():
                select_all_columns_btn = gr.Button("Select All Columns", size="sm")
                deselect_all_columns_btn = gr.Button("Deselect All Columns", size="sm")

            with gr.Accordion("Attribute Overrides", open=False):
                column_override_enabled = gr.Checkbox(label="Override column attributes for this table", value=False)
                column_override_attrs = gr.CheckboxGroup(
                    label="Column attributes",
                    choices=list(COLUMN_ATTRIBUTES),
                    value=list(DEFAULT_COLUMN_ATTRIBUTES),
                    interactive=True,
                )
                row_override_enabled = gr.Checkbox(label="Override row attributes for this table", value=False)
                row_override_attrs = gr.CheckboxGroup(
                    label="Row attributes",
                    choices=list(ROW_ATTRIBUTES),
                    value=list(DEFAULT_ROW_ATTRIBUTES),
                    interactive=True,
                )

        # Right Panel: Output Builder
        with gr.Column(scale=1):
            gr.Markdown("### 4. Output")
            output_mode = gr.Radio(
                choices=[m.value for m in OutputMode],
                value=OutputMode.COLUMN_CENTRIC.value,
                label="Output Format",
            )
            global_column_attrs = gr.CheckboxGroup(
                label="Column attributes (all tables)",
                choices=list(COLUMN_ATTRIBUTES),
                value=list(DEFAULT_COLUMN_ATTRIBUTES),
                interactive=True,
            )
            global_row_attrs = gr.CheckboxGroup(
                label="Row attributes (all tables)",
                choices=list(ROW_ATTRIBUTES),
                value=list(DEFAULT_ROW_ATTRIBUTES),
                interactive=True,
            )

            gr.Markdown("### 5. Export")
            with gr.Row():
                export_table_btn = gr.Button("Export Table")
                export_doc_btn = gr.Button("Export Selected Tables", variant="primary")
            download_output = gr.File(label="Download Result")
            json_preview = gr.Code(label="JSON Preview", language="json", interactive=False)

    document_views = [doc_title, tables_selector, table_picker, json_preview]

    demo.load(
        fn=initial_state_handler,
        inputs=[],
        outputs=[session_state, api_token, doc_id, saved_docs, status_msg],
    )

    load_tables_btn.click(
        fn=load_tables_handler,
        inputs=[session_state, api_token, doc_id],
        outputs=[session_state, status_msg] + document_views,
    )

    tables_selector.input(
        fn=select_tables_handler,
        inputs=[session_state, tables_selector],
        outputs=[session_state, json_preview],
    )

    for button, select_all in ((select_all_tables_btn, True), (deselect_all_tables_btn, False)):
        button.click(
            fn=lambda session, select_all=select_all: select_all_tables_handler(session, select_all),
            inputs=[session_state],
            outputs=[session_state, tables_selector, json_preview],
        )

    table_picker.change(
        fn=focus_table_handler,
        inputs=[session_state, table_picker],
        outputs=[
            row_count,
            column_filter,
            column_override_enabled,
            column_override_attrs,
            row_override_enabled,
            row_override_attrs,
            status_msg,
        ],
    )

    fetch_table_btn.click(
        fn=fetch_table_handler,
        inputs=[session_state, table_picker, row_count],
        outputs=[session_state, column_filter, status_msg, json_preview],
    )

    for button, select_all in ((select_all_columns_btn, True), (deselect_all_columns_btn, False)):
        button.click(
            fn=lambda session, table_id, select_all=select_all: select_all_columns_handler(session, table_id, select_all),
            inputs=[session_state, table_picker],
            outputs=[session_state, column_filter, status_msg, json_preview],
        )

    column_filter.input(
        fn=column_filter_handler,
        inputs=[session_state, table_picker, column_filter],
        outputs=[session_state, json_preview],
    )

    for control in (column_override_enabled, column_override_attrs):
        control.input(
            fn=column_override_handler,
            inputs=[session_state, table_picker, column_override_enabled, column_override_attrs],
            outputs=[session_state, json_preview],
        )

    for control in (row_override_enabled, row_override_attrs):
        control.input(
            fn=row_override_handler,
            inputs=[session_state, table_picker, row_override_enabled, row_override_attrs],
            outputs=[session_state, json_preview],
        )

    for control in (output_mode, global_column_attrs, global_row_attrs):
        control.input(
            fn=global_settings_handler,
            inputs=[session_state, global_column_attrs, global_row_attrs, output_mode],
            outputs=[session_state, json_preview],
        )

    export_table_btn.click(
        fn=export_table_handler,
        inputs=[session_state, table_picker],
        outputs=[download_output, status_msg],
    )

    export_doc_btn.click(
        fn=export_document_handler,
        inputs=[session_state],
        outputs=[download_output, status_msg],
    )

    save_doc_btn.click(
        fn=save_document_handler,
        inputs=[session_state, api_token, doc_id],
        outputs=[saved_docs, status_msg],
    )

    load_saved_btn.click(
        fn=load_saved_document_handler,
        inputs=[session_state, saved_docs],
        outputs=[session_state, api_token, doc_id, status_msg] + document_views,
    )

    remove_saved_btn.click(
        fn=remove_saved_document_handler,
        inputs=[session_state, saved_docs, api_token, doc_id],
        outputs=[session_state, saved_docs, api_token, doc_id, status_msg] + document_views,
    )

    reset_btn.click(
        fn=reset_handler,
        inputs=[session_state],
        outputs=[session_state, api_token, doc_id, status_msg] + document_views + [download_output],
    )

if __name__ == "__main__":
    demo.launch(server_name=settings.server_name, server_port=settings.server_port)
