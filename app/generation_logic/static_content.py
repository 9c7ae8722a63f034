"""Fixed texts printed in every generated report."""

DATA_SOURCES_LABEL = "Competencia Fuentes de Datos Segura"
TEAMWORK_LABEL = "Competencia Trabajo en Equipo"
STUDENT_NOTE_LABEL = "Nota"
GENERAL_NOTES_TITLE = "Notas generales"

AGGREGATE_DOCUMENT_TITLE = "Informe de retroalimentación por competencias"
STUDENT_DOCUMENT_TITLE = "Informe individual de retroalimentación"

APPENDIX_TITLE = "Anexo: indicadores de evaluación y escala de puntaje"

APPENDIX_PARAGRAPHS: tuple[str, ...] = (
    "Este informe resume el desempeño del estudiante en dos competencias del curso: "
    "Fuentes de Datos Segura y Trabajo en Equipo. Cada competencia se evalúa mediante un "
    "conjunto de indicadores observables registrados por el equipo docente en la planilla "
    "de evaluación.",
    "La competencia Fuentes de Datos Segura considera indicadores asociados a la selección "
    "y trazabilidad de las fuentes, la calidad y limpieza de los datos, la documentación del "
    "flujo de procesamiento (ETL), el resguardo de la información y la aplicación de criterios "
    "éticos en su uso.",
    "La competencia Trabajo en Equipo considera indicadores asociados a la planificación y "
    "distribución de responsabilidades, la comunicación y coordinación técnica, la revisión "
    "entre pares y la construcción colaborativa de los productos entregados.",
    "Cada indicador se califica en una escala de 0 a 4 puntos. 4 puntos: el indicador se "
    "cumple plenamente y con evidencia consistente. 3 puntos: el indicador se cumple con "
    "observaciones menores. 2 puntos: el indicador se cumple de forma parcial y requiere "
    "mejoras relevantes. 1 punto: existe evidencia incipiente o aislada del indicador. "
    "0 puntos: no existe evidencia del indicador, lo que constituye una ausencia crítica que "
    "debe abordarse de manera prioritaria.",
    "Los resúmenes informan el número total de indicadores evaluados, la cantidad de "
    "indicadores con puntaje máximo y los indicadores con puntaje inferior a 4, junto con "
    "recomendaciones prácticas de mejora. Este documento tiene carácter formativo y busca "
    "orientar el trabajo del estudiante en las siguientes etapas del curso.",
)
