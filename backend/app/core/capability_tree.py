from dataclasses import dataclass, field


@dataclass(frozen=True)
class CapabilityNode:
    id: str
    label: str
    description: str | None = None
    children: tuple["CapabilityNode", ...] = field(default_factory=tuple)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def to_dict(self) -> dict:
        payload: dict = {"id": self.id, "label": self.label}
        if self.description:
            payload["description"] = self.description
        if self.children:
            payload["children"] = [child.to_dict() for child in self.children]
        return payload


def _node(id: str, label: str, description: str | None = None, *children: CapabilityNode) -> CapabilityNode:
    return CapabilityNode(id=id, label=label, description=description, children=tuple(children))


PERMISSION_SECTIONS: list[dict[str, str]] = [
    {"id": "recipes", "title": "Ricette", "description": "Crea e modifica ricette di produzione."},
    {"id": "magento", "title": "Magento", "description": "Aggiorna i dati nutrizionali su Magento."},
    {"id": "ai-tools", "title": "AI Tools", "description": "Accesso agli strumenti di stima AI."},
    {"id": "docs", "title": "Documenti", "description": "Manuali, linee guida e checklist."},
    {"id": "reports", "title": "Reportistica", "description": "Dashboard e statistiche operative."},
]

INGREDIENT_COLUMN_IDS: tuple[str, ...] = (
    "name",
    "sku",
    "qtyForRecipe",
    "qtyOriginal",
    "percentOnTotal",
    "percentOfPowder",
    "pricePerKg",
    "pricePerRecipe",
    "isPowder",
    "productName",
    "supplier",
    "warehouseLocation",
    "mpSku",
    "lot",
    "done",
    "checkGlutine",
    "action",
)

_INGREDIENT_COLUMN_LABELS: dict[str, str] = {
    "name": "Nome ingrediente",
    "sku": "SKU",
    "qtyForRecipe": "Quantità per ricetta",
    "qtyOriginal": "Quantità originale",
    "percentOnTotal": "% sul totale",
    "percentOfPowder": "% di polvere",
    "pricePerKg": "€ / kg",
    "pricePerRecipe": "€ / ricetta",
    "isPowder": "È polvere",
    "productName": "Materia Prima",
    "supplier": "Fornitore",
    "warehouseLocation": "Posizione magazzino",
    "mpSku": "SKU Magento",
    "lot": "Lotto",
    "done": "Fatto",
    "checkGlutine": "Controllo glutine",
    "action": "Azioni",
}

_RECIPE_PROCESS = _node(
    "recipe.process",
    "Process settings",
    "Sezioni tecniche di processo",
    _node(
        "recipe.process.cookies",
        "Biscotti & Teglie",
        "Pezzi e pesi",
        _node("recipe.process.cookiesCount", "Numero biscotti"),
        _node("recipe.process.cookieWeightRawG", "Peso biscotto crudo (g)"),
        _node("recipe.process.cookieWeightCookedG", "Peso biscotto cotto (g)"),
        _node("recipe.process.trayWeightRawG", "Peso teglia cruda (g)"),
        _node("recipe.process.trayWeightCookedG", "Peso teglia cotta (g)"),
    ),
    _node(
        "recipe.process.equipment",
        "Attrezzature",
        "Capienze e quantità",
        _node("recipe.process.mixerCapacityKg", "Capienza impastatrice"),
        _node("recipe.process.doughBatchesCount", "Numero impasti"),
        _node("recipe.process.depositorCapacityKg", "Capienza colatrice"),
        _node("recipe.process.depositorsCount", "Numero colatrici"),
        _node("recipe.process.traysCapacityKg", "Capienza teglie"),
        _node("recipe.process.traysCount", "Numero teglie"),
        _node("recipe.process.boxCapacity", "Capienza scatole"),
        _node("recipe.process.numberOfBoxes", "Numero scatole"),
        _node("recipe.process.cartCapacity", "Capienza carrelli"),
        _node("recipe.process.numberOfCarts", "Numero carrelli"),
    ),
    _node(
        "recipe.process.planning",
        "Pianificazione",
        "Flussi teglie e forni",
        _node("recipe.process.traysPerBatch", "Teglie per impasto"),
        _node("recipe.process.traysPerDepositors", "Teglie per colatrice"),
        _node("recipe.process.traysPerOvenLoad", "Teglie per infornata"),
        _node("recipe.process.ovenLoadsCount", "Numero infornate"),
    ),
    _node(
        "recipe.process.quality",
        "Qualità & Processo",
        "Controlli di processo",
        _node("recipe.process.glutenTestDone", "Test glutine effettuato"),
        _node("recipe.process.valveOpenMinutes", "Minuti apertura valvola"),
        _node("recipe.process.lot", "Lotto"),
        _node("recipe.process.laboratoryHumidityPercent", "Umidità laboratorio %"),
        _node("recipe.process.externalTemperatureC", "Temperatura esterna °C"),
        _node("recipe.process.waterTemperatureC", "Temperatura Acqua °C"),
        _node("recipe.process.finalDoughTemperatureC", "Temperatura finale impasto °C"),
    ),
)

PERMISSION_TREE: tuple[CapabilityNode, ...] = (
    _node(
        "recipe",
        "Editor ricette",
        "Campi e pannelli della pagina ricetta",
        _node("recipe.header", "Intestazione", None, _node("recipe.header.meta", "Titolo e metadati")),
        _node(
            "recipe.basic",
            "Basic info",
            "Dati generali e rese",
            _node("recipe.basic.name", "Nome ricetta"),
            _node("recipe.basic.packageWeight", "Peso confezione"),
            _node("recipe.basic.numberOfPackages", "Numero pacchetti"),
            _node("recipe.basic.wastePercent", "Scarto %"),
            _node("recipe.basic.waterPercent", "Acqua %"),
        ),
        _node(
            "recipe.metadata",
            "Metadati",
            "Categoria e clienti della ricetta",
            _node("recipe.metadata.category", "Categoria", "Visualizza e modifica la categoria della ricetta"),
            _node("recipe.metadata.clients", "Clienti", "Visualizza e modifica i clienti associati alla ricetta"),
        ),
        _node(
            "recipe.processes",
            "Processi di produzione",
            "Gestione processi e tracciamento lavorazioni",
            _node("recipe.processes.view", "Visualizza widget processi"),
            _node("recipe.processes.edit", "Modifica valori processi"),
            _node("recipe.processes.tracking", "Tracciamento lavorazioni"),
            _node("recipe.processes.history", "Visualizza storico"),
        ),
        _node(
            "recipe.calculated",
            "Dati calcolati",
            "Pannelli blu con totali e masse",
            _node("recipe.calculated.panel", "Riepilogo calcoli"),
        ),
        _RECIPE_PROCESS,
        _node(
            "recipe.costs",
            "Costi",
            "Costi standard e personalizzati",
            _node("recipe.costs.hourly_labor", "Costo orario personale"),
            _node("recipe.costs.baking_paper", "Costo carta da forno"),
            _node("recipe.costs.release_agent", "Costo staccante"),
            _node("recipe.costs.bag", "Costo sacchetto"),
            _node("recipe.costs.carton", "Costo cartone"),
            _node("recipe.costs.label", "Costo Etichetta"),
            _node("recipe.costs.depositor_leasing", "Leasing colatrice"),
            _node("recipe.costs.oven_amortization", "Ammortamento forno"),
            _node("recipe.costs.tray_amortization", "Ammortamento teglie"),
        ),
        _node(
            "recipe.ingredients",
            "Ingredienti",
            "Tabella, pesi e nutrizionali",
            _node("recipe.ingredients.table", "Visualizzazione tabella ingredienti"),
            _node("recipe.ingredients.editing", "Modifica quantità e costi"),
            _node("recipe.ingredients.actions", "Aggiunta/rimozione ingredienti"),
            _node("recipe.ingredients.nutrition", "Dettagli nutritivi ingredienti"),
            _node("recipe.ingredients.automatch", "Tasto Auto match"),
            _node(
                "recipe.ingredients.columns",
                "Colonne tabella",
                "Visibilità colonne individuali",
                *(
                    _node(f"recipe.ingredients.column.{column_id}", _INGREDIENT_COLUMN_LABELS[column_id])
                    for column_id in INGREDIENT_COLUMN_IDS
                ),
            ),
        ),
        _node("recipe.notes", "Note", None, _node("recipe.notes.body", "Campo testo note")),
        _node("recipe.nutrition", "Pannello nutrizionale", None, _node("recipe.nutrition.panel", "Sezione Nutrition")),
        _node(
            "recipe.actions",
            "Azioni",
            None,
            _node("recipe.actions.save", "Salvataggio ricetta"),
            _node("recipe.actions.nutritionToggle", "Mostra/nascondi dati nutrizionali ingredienti"),
        ),
        _node(
            "recipe.history",
            "Storico modifiche",
            "Pannello storico modifiche ricetta",
            _node("recipe.history.panel", "Sezione storico modifiche"),
        ),
        _node(
            "recipe.colatrice",
            "Setting Colatrice",
            "Impostazioni macchina colatrice",
            _node("recipe.colatrice.home", "Home"),
            _node("recipe.colatrice.page1", "Setting page 1"),
            _node("recipe.colatrice.page2", "Setting page 2"),
            _node("recipe.colatrice.page3", "Setting page 3"),
        ),
    ),
    _node(
        "portal",
        "Portal · Permessi",
        "Widget disponibili nella pagina utente",
        _node("portal.overview", "Overview profilo", "Saluto iniziale e anagrafica"),
        _node("portal.sections", "Sezioni consentite", "Lista sezioni disponibili all'utente"),
        _node("portal.password", "Cambio password", "Modulo per aggiornare la password"),
        _node("portal.banner", "Banner “cambia password”", "Avviso obbligo cambio password"),
        _node("portal.recipes", "Portal Ricette", "Widget gestione ricette"),
    ),
    _node(
        "admin",
        "Admin generale",
        "Accesso aree di configurazione",
        _node("admin.permissions", "Gestione permessi", "Accesso a /admin/permissions"),
        _node("admin.costs.standard", "Costi standard", "Accesso a /admin/costs/standard"),
        _node("admin.parameters.standard", "Parametri standard", "Accesso a /admin/parameters/standard"),
        _node("admin.processes", "Gestione processi standard", "Accesso a /admin/recipes/processes"),
        _node(
            "admin.production.history",
            "Storico Produzioni",
            "Accesso alla pagina storico produzioni con export Excel",
        ),
        _node(
            "admin.navigation",
            "Link di navigazione",
            "Link nel menu di navigazione",
            _node("admin.navigation.excelrx", "Link ExcelRx nel menu"),
            _node("admin.navigation.portal", "Link Portal nel menu"),
        ),
    ),
    _node(
        "production",
        "Produzione",
        "Strumenti per la gestione della produzione",
        _node(
            "production.lot.decode",
            "Decodifica lotto produzione",
            "Accesso alla pagina per decodificare i lotti di produzione",
        ),
    ),
)

PERMISSION_WIDGET_GROUPS: list[dict] = [
    {
        "id": "admin-recipes",
        "title": "Admin · Ricette",
        "items": [
            "recipe.header",
            "recipe.basic",
            "recipe.calculated",
            "recipe.process",
            "recipe.ingredients",
            "recipe.notes",
            "recipe.nutrition",
            "recipe.actions",
            "recipe.history",
            "recipe.colatrice",
            "recipe.processes",
        ],
    },
    {
        "id": "portal",
        "title": "Portal · Permessi",
        "items": ["portal.overview", "portal.sections", "portal.password", "portal.banner", "portal.recipes"],
    },
    {
        "id": "admin",
        "title": "Admin generale",
        "items": [
            "admin.permissions",
            "admin.costs.standard",
            "admin.parameters.standard",
            "admin.production.history",
            "admin.navigation",
        ],
    },
]


def _collect(
    nodes: tuple[CapabilityNode, ...],
    leaf_map: dict[str, list[str]],
    leaf_ids: list[str],
    index: dict[str, CapabilityNode],
) -> list[str]:
    collected: list[str] = []
    for node in nodes:
        index[node.id] = node
        if node.is_leaf:
            leaf_ids.append(node.id)
            descendants = [node.id]
        else:
            descendants = _collect(node.children, leaf_map, leaf_ids, index)
        leaf_map[node.id] = descendants
        collected.extend(descendants)
    return collected


PERMISSION_TREE_LEAF_MAP: dict[str, list[str]] = {}
PERMISSION_TREE_LEAF_IDS: list[str] = []
_NODE_INDEX: dict[str, CapabilityNode] = {}
_collect(PERMISSION_TREE, PERMISSION_TREE_LEAF_MAP, PERMISSION_TREE_LEAF_IDS, _NODE_INDEX)


def find_node(identifier: str) -> CapabilityNode | None:
    return _NODE_INDEX.get(identifier)


def leaf_ids_under(identifier: str) -> list[str]:
    return list(PERMISSION_TREE_LEAF_MAP.get(identifier, []))


def capability_tree_payload() -> dict:
    return {
        "tree": [node.to_dict() for node in PERMISSION_TREE],
        "sections": PERMISSION_SECTIONS,
        "widget_groups": [
            {
                "id": group["id"],
                "title": group["title"],
                "items": [
                    {"id": item, "title": node.label if (node := find_node(item)) else item}
                    for item in group["items"]
                ],
            }
            for group in PERMISSION_WIDGET_GROUPS
        ],
        "leaf_count": len(PERMISSION_TREE_LEAF_IDS),
    }
