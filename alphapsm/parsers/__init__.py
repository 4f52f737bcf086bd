from alphapsm.parsers.base import ResultParser, SearchResult
from alphapsm.parsers.inspect import InspectParser
from alphapsm.parsers.moda import MODaParser
from alphapsm.parsers.msgfplus import MSGFPlusParser
from alphapsm.parsers.mspathfinder import MSPathFinderParser

PARSERS: dict[str, type[ResultParser]] = {
    parser.tool_name: parser
    for parser in (InspectParser, MSGFPlusParser, MSPathFinderParser, MODaParser)
}
