"""Shared constants for pdfsheet."""

# Instruction sent with every page image. {header_rule} is filled per page.
TABLE_PROMPT_TEMPLATE = """Analyze this image of a PDF page and extract the table.

INSTRUCTIONS:
1. Identify the table in the image
2. Extract ALL rows and columns of the table
3. {header_rule}
4. Each table row = one row in the result
5. Separate every column correctly
6. Preserve all values (numbers, text, currency, dates)
7. Do not insert line breaks inside cells. Return continuous text (a single string per cell). Visual wrapping is applied by the column width in the spreadsheet.
8. Return JSON: {{"table": [["col1","col2"],["val1","val2"]]}}
9. If there is no visible table, return: {{"table": []}}

IMPORTANT: Extract the data EXACTLY as it appears in the image."""

HEADER_RULE_FIRST_PAGE = "Include the header row"
HEADER_RULE_NEXT_PAGES = "Do NOT include headers (they were already extracted)"

# Job statuses, in forward order
STATUS_QUEUED = "queued"
STATUS_PROCESSING = "processing"
STATUS_DONE = "done"
STATUS_ERROR = "error"

JOB_STATUSES = (STATUS_QUEUED, STATUS_PROCESSING, STATUS_DONE, STATUS_ERROR)
TERMINAL_STATUSES = frozenset({STATUS_DONE, STATUS_ERROR})

# Rank used to reject backward transitions (done and error share a rank)
STATUS_RANK = {
    STATUS_QUEUED: 0,
    STATUS_PROCESSING: 1,
    STATUS_DONE: 2,
    STATUS_ERROR: 2,
}

# Progress allocation for a conversion (percent)
PROGRESS_START = 5
PROGRESS_PAGES_BASE = 10
PROGRESS_PAGES_SPAN = 75
PROGRESS_UNKNOWN_PAGE_STEP = 6
PROGRESS_WORKBOOK = 90

# Workbook styling
HEADER_FILL_COLOR = "4472C4"
HEADER_FONT_COLOR = "FFFFFF"
BORDER_COLOR = "000000"
MIN_COLUMN_WIDTH = 10
MAX_COLUMN_WIDTH = 45
WORKBOOK_CREATOR = "PDF to Excel Converter"

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# User-facing messages, keyed by locale
MESSAGES = {
    "en": {
        "waiting": "Waiting...",
        "starting": "Starting...",
        "rasterizing": "Converting PDF to images...",
        "page": "Processing page {page}...",
        "page_of": "Processing page {page} of {total}...",
        "workbook": "Building Excel spreadsheet...",
        "done": "Done",
        "failed": "Failed",
        "no_table": "No table found",
        "no_table_error": (
            "No table found in the PDF. The AI could not identify tables in the page images."
        ),
        "no_file": "No file uploaded",
        "not_pdf": "The file must be a PDF",
        "invalid_pdf": "The file could not be read as a PDF",
        "no_api_key": "Vision LLM API key is not configured",
        "job_id_required": "jobId is required",
        "job_not_found": "Job not found (expired or invalid)",
        "not_ready": "File is not ready yet",
        "processing_failed": "Processing failed",
        "unknown_error": "Unknown error",
        "start_failed": "Failed to start processing: {error}",
    },
    "pt": {
        "waiting": "Aguardando...",
        "starting": "Iniciando...",
        "rasterizing": "Convertendo PDF para imagens...",
        "page": "Processando página {page}...",
        "page_of": "Processando página {page} de {total}...",
        "workbook": "Gerando planilha Excel...",
        "done": "Concluído",
        "failed": "Falha",
        "no_table": "Nenhuma tabela encontrada",
        "no_table_error": (
            "Nenhuma tabela encontrada no PDF. "
            "A IA não conseguiu identificar tabelas nas imagens."
        ),
        "no_file": "Nenhum arquivo enviado",
        "not_pdf": "O arquivo deve ser um PDF",
        "invalid_pdf": "Não foi possível ler o arquivo como PDF",
        "no_api_key": "Chave da API do modelo de visão não configurada",
        "job_id_required": "jobId é obrigatório",
        "job_not_found": "Job não encontrado (expirado ou inválido)",
        "not_ready": "Arquivo ainda não está pronto",
        "processing_failed": "Falha ao processar",
        "unknown_error": "Erro desconhecido",
        "start_failed": "Erro ao iniciar o processamento: {error}",
    },
}

DEFAULT_LOCALE = "en"
